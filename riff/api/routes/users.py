"""
riff.api.routes.users — Registration, profiles and history
===========================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy import Engine

from riff.api.deps import (
    Identity,
    get_current_identity,
    get_cycle,
    get_engine,
    get_ledger,
)
from riff.database.engine import run_db
from riff.engine.cycle import DailyCycle
from riff.services import users as user_service
from riff.services.ledger import RiffLedger

router = APIRouter(prefix="/users", tags=["users"])


class UserCreate(BaseModel):
    username: str


@router.post("", status_code=status.HTTP_201_CREATED)
async def register_user(
    body: UserCreate,
    engine: Engine = Depends(get_engine),
    identity: Identity = Depends(get_current_identity),
):
    """Claim a username for the caller's id."""
    user = await run_db(user_service.register_user, engine, identity.user_id, body.username)
    return {
        "id": user.id,
        "username": user.username,
        "medals": user.medal_tally(),
    }


@router.get("/{user_id}")
async def get_profile(
    user_id: str,
    engine: Engine = Depends(get_engine),
    cycle: DailyCycle = Depends(get_cycle),
):
    return await run_db(user_service.get_user_profile, engine, user_id, cycle.today())


@router.get("/{user_id}/riffs")
async def list_user_riffs(
    user_id: str,
    limit: int | None = Query(default=None, ge=0, le=100),
    ledger: RiffLedger = Depends(get_ledger),
):
    riffs = await run_db(ledger.list_user_riffs, user_id, limit)
    return [r.to_dict() for r in riffs]


@router.get("/{user_id}/medals/history")
async def medal_history(
    user_id: str,
    limit: int | None = Query(default=None, ge=1, le=365),
    engine: Engine = Depends(get_engine),
):
    return await run_db(user_service.get_medal_history, engine, user_id, limit)


@router.get("/{user_id}/medals")
async def medal_tally(
    user_id: str,
    engine: Engine = Depends(get_engine),
):
    return await run_db(user_service.get_medal_tally, engine, user_id)
