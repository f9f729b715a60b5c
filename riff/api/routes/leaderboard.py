"""
riff.api.routes.leaderboard — Daily, weekly and monthly standings
==================================================================
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from riff.api.deps import get_ledger
from riff.database.engine import run_db
from riff.engine.cycle import month_bounds, week_bounds
from riff.services.ledger import RiffLedger

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("/daily")
async def daily_leaderboard(
    day: date | None = Query(default=None, alias="date"),
    ledger: RiffLedger = Depends(get_ledger),
):
    """Standings for ``date`` (today when omitted)."""
    target = day or ledger.cycle.today()
    entries = await run_db(ledger.leaderboard_for_day, target)
    return {
        "date": target.isoformat(),
        "entries": [entry.to_dict() for entry in entries],
    }


async def _range_board(ledger: RiffLedger, start: date, end: date) -> dict:
    standings = await run_db(ledger.leaderboard_for_range, start, end)
    return {
        "start": start.isoformat(),
        "end": end.isoformat(),
        "entries": [standing.to_dict() for standing in standings],
    }


@router.get("/weekly")
async def weekly_leaderboard(
    week: date | None = Query(default=None),
    ledger: RiffLedger = Depends(get_ledger),
):
    """Monday-to-Sunday totals for the week containing ``week`` (this week by default)."""
    start, end = week_bounds(week or ledger.cycle.today())
    return await _range_board(ledger, start, end)


@router.get("/monthly")
async def monthly_leaderboard(
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None, ge=1, le=9999),
    ledger: RiffLedger = Depends(get_ledger),
):
    """Totals for ``month``/``year``; either one defaults to the current one."""
    today = ledger.cycle.today()
    start, end = month_bounds(year or today.year, month or today.month)
    return await _range_board(ledger, start, end)
