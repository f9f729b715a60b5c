"""
riff.services.users — Registration, Profiles & Medal History
=============================================================

The engine never authenticates anyone: user ids come from the identity
provider.  This module only records the username that goes with an id and
answers profile questions (medal tally, riff totals, daily streak).
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from riff.database.engine import storage_session
from riff.database.models import MedalAward, Riff, User
from riff.engine.validation import validate_username
from riff.errors import ConflictError, NotFoundError

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


def register_user(engine: Engine, user_id: str, username: str) -> User:
    """Record *username* for *user_id*.

    Raises ValidationError for a malformed username and ConflictError when
    the id is already registered or the username is taken.
    """
    name = validate_username(username)

    with storage_session(engine, "register_user") as session:
        if session.get(User, user_id) is not None:
            raise ConflictError(f"User {user_id} is already registered")
        user = User(id=user_id, username=name)
        try:
            with session.begin_nested():
                session.add(user)
                session.flush()
        except IntegrityError:
            raise ConflictError(f"Username '{name}' is already taken") from None
        session.refresh(user)
        session.expunge(user)

    logger.info("Registered user %s as %s", user_id, name)
    return user


def get_user(engine: Engine, user_id: str) -> User:
    with storage_session(engine, "get_user") as session:
        user = session.get(User, user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        session.expunge(user)
        return user


def _current_streak(days: list[date], today: date) -> int:
    """Consecutive riff days ending today (or yesterday, if today is still open)."""
    posted = set(days)
    cursor = today if today in posted else today - timedelta(days=1)
    streak = 0
    while cursor in posted:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def get_user_profile(engine: Engine, user_id: str, today: date) -> dict:
    """Profile card data: username, medal tally, riff totals and streak."""
    with storage_session(engine, "get_user_profile") as session:
        user = session.get(User, user_id)
        if user is None:
            raise NotFoundError("user", user_id)

        total_riffs, total_likes = session.execute(
            select(
                func.count(Riff.id),
                func.coalesce(func.sum(Riff.like_count), 0),
            ).where(Riff.author_id == user_id)
        ).one()
        days = list(
            session.scalars(
                select(Riff.submission_date)
                .where(Riff.author_id == user_id, Riff.submission_date <= today)
                .order_by(Riff.submission_date.desc())
            )
        )

        return {
            "id": user.id,
            "username": user.username,
            "medals": user.medal_tally(),
            "total_riffs": total_riffs,
            "total_likes": total_likes,
            "current_streak": _current_streak(days, today),
            "created_at": user.created_at.isoformat() if user.created_at else None,
        }


def get_medal_tally(engine: Engine, user_id: str) -> dict:
    """Lifetime gold/silver/bronze counts for *user_id*."""
    user = get_user(engine, user_id)
    tally = user.medal_tally()
    return {
        "user_id": user.id,
        "username": user.username,
        "medals": tally,
        "total": sum(tally.values()),
    }


def get_medal_history(engine: Engine, user_id: str, limit: int | None = None) -> list[dict]:
    """Medals won by *user_id*, newest day first."""
    with storage_session(engine, "get_medal_history") as session:
        stmt = (
            select(MedalAward)
            .where(MedalAward.user_id == user_id)
            .order_by(MedalAward.day.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return [
            {
                "date": award.day.isoformat(),
                "medal": award.medal,
                "rank": award.rank,
                "riff_id": award.riff_id,
                "likes": award.like_count,
            }
            for award in session.scalars(stmt)
        ]
