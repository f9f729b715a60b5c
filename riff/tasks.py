"""
riff.tasks — Periodic Background Tasks
=======================================

The only scheduled job is medal settlement: right after each reset boundary
the day that just closed is ranked and its top three are awarded.

The loop runs inside the API process (started from the lifespan) or on its
own via ``python -m riff``.  Database work goes through ``run_db()`` so the
event loop is never blocked.  Settlement is idempotent per day, so running
the loop in two processes at once only costs a duplicate no-op.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from riff.database.engine import run_db
from riff.services.settlement import SettlementResult, settle_pending

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from riff.engine.cycle import DailyCycle

logger = logging.getLogger(__name__)

# Small grace period so the sleep never wakes a hair before the boundary.
_BOUNDARY_SLACK_SECONDS = 1.0


async def run_settlement_once(engine: Engine, cycle: DailyCycle) -> list[SettlementResult]:
    """Settle every closed day that is still pending."""
    results = await run_db(settle_pending, engine, cycle.today())
    for result in results:
        logger.info(
            "Medals awarded for %s: %s",
            result.day,
            ", ".join(f"{e.medal.value}={e.username}" for e in result.awarded) or "none",
        )
    return results


async def settlement_loop(engine: Engine, cycle: DailyCycle) -> None:
    """Settle pending days, sleep until the next reset, repeat.  Runs until cancelled."""
    logger.info("Settlement loop started (reset at %02d:00 UTC)", cycle.reset_hour)
    while True:
        try:
            await run_settlement_once(engine, cycle)
        except Exception:
            logger.exception("Settlement run failed — retrying at the next reset")

        delay = cycle.seconds_until_reset() + _BOUNDARY_SLACK_SECONDS
        logger.debug("Next settlement in %.0f s", delay)
        await asyncio.sleep(delay)
