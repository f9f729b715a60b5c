"""
riff.api.routes.riffs — Submit, edit, vote and browse riffs
============================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from riff.api.deps import (
    Identity,
    get_current_identity,
    get_ledger,
    get_optional_identity,
)
from riff.database.engine import run_db
from riff.database.models import VoteDirection
from riff.services.ledger import RiffLedger

router = APIRouter(prefix="/riffs", tags=["riffs"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class RiffCreate(BaseModel):
    content: str


class RiffUpdate(BaseModel):
    content: str


class VoteRequest(BaseModel):
    direction: VoteDirection


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
@router.get("/today")
async def list_todays_riffs(
    ledger: RiffLedger = Depends(get_ledger),
    viewer: Identity | None = Depends(get_optional_identity),
):
    """Today's riffs, newest first.  ``has_voted`` reflects the caller."""
    riffs = await run_db(ledger.list_todays_riffs, viewer.user_id if viewer else None)
    return {
        "date": ledger.cycle.today().isoformat(),
        "riffs": [r.to_dict() for r in riffs],
    }


@router.get("/{riff_id}")
async def get_riff(
    riff_id: str,
    ledger: RiffLedger = Depends(get_ledger),
    viewer: Identity | None = Depends(get_optional_identity),
):
    riff = await run_db(ledger.get_riff, riff_id, viewer.user_id if viewer else None)
    return riff.to_dict()


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_riff(
    body: RiffCreate,
    ledger: RiffLedger = Depends(get_ledger),
    identity: Identity = Depends(get_current_identity),
):
    riff = await run_db(
        ledger.create_riff, identity.user_id, identity.username, body.content
    )
    return riff.to_dict()


@router.patch("/{riff_id}")
async def edit_riff(
    riff_id: str,
    body: RiffUpdate,
    ledger: RiffLedger = Depends(get_ledger),
    identity: Identity = Depends(get_current_identity),
):
    riff = await run_db(ledger.edit_riff, riff_id, identity.user_id, body.content)
    return riff.to_dict()


@router.post("/{riff_id}/vote")
async def vote_on_riff(
    riff_id: str,
    body: VoteRequest,
    ledger: RiffLedger = Depends(get_ledger),
    identity: Identity = Depends(get_current_identity),
):
    """Upvote or retract.  Returns the riff and today's refreshed standings."""
    riff = await run_db(ledger.vote_on_riff, riff_id, identity.user_id, body.direction)
    leaderboard = await run_db(ledger.leaderboard_for_day, riff.submission_date)
    return {
        "riff": riff.to_dict(),
        "leaderboard": [entry.to_dict() for entry in leaderboard],
    }
