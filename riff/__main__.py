"""
riff.__main__ — Entry point for ``python -m riff``
==================================================

Runs the medal settlement worker on its own, for deployments that keep
``settlement_enabled: false`` in the API processes.

Wiring:
1. Load .env (secrets).
2. Load config.yaml (soft settings).
3. Create the SQLAlchemy engine and ensure tables exist.
4. Run the settlement loop until Ctrl+C or SIGTERM.

Run with::

    python -m riff
"""

from __future__ import annotations

import asyncio
import logging
import os

from dotenv import load_dotenv

from riff.config import load_config
from riff.database.engine import create_db_engine, init_db
from riff.engine.cycle import DailyCycle
from riff.tasks import settlement_loop

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("riff")


def main() -> None:
    """Bootstrap and run the settlement worker."""

    # 1. Environment variables (secrets).
    load_dotenv()

    # 2. Soft configuration.
    cfg = load_config(os.getenv("RIFF_CONFIG", "config.yaml"))
    logger.info("Config loaded — %s, %d prompts", cfg.app_name, len(cfg.prompts))

    # 3. Database.
    engine = create_db_engine()
    init_db(engine)

    # 4. Run (blocks until Ctrl+C or SIGTERM).
    cycle = DailyCycle(cfg.prompts, reset_hour=cfg.reset_hour_utc)
    logger.info("Starting settlement worker…")
    try:
        asyncio.run(settlement_loop(engine, cycle))
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()
