"""
riff.services.settlement — End-of-Day Medal Settlement
=======================================================

At every reset boundary the day that just closed is settled: its final
leaderboard is computed once and the top three authors get a gold, silver
or bronze added to their lifetime tally.

Exactly-once per day: the first write of a settlement is an insert into
``daily_settlements`` keyed by the day (SAVEPOINT + IntegrityError, the same
guard the ledger uses for riffs).  A second run for the same day sees the
duplicate and changes nothing.  Tally increments, ``medal_awards`` rows and
the settlement marker commit together.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from riff.constants import MAX_USERNAME_LENGTH
from riff.database.engine import storage_session
from riff.database.models import DailySettlement, Medal, MedalAward, User
from riff.database.repository import RiffRepository
from riff.engine.ranking import LeaderboardEntry, rank_riffs
from riff.errors import StorageError

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

_TALLY_COLUMN: dict[Medal, str] = {
    Medal.GOLD: "gold_medals",
    Medal.SILVER: "silver_medals",
    Medal.BRONZE: "bronze_medals",
}


@dataclass
class SettlementResult:
    """Outcome of settling one day."""

    day: date
    already_settled: bool = False
    riff_count: int = 0
    awarded: list[LeaderboardEntry] = field(default_factory=list)


def _username_candidates(username: str, user_id: str) -> Iterator[str]:
    """The riff's username, then ``name_<id prefix>``, then numbered variants."""
    yield username[:MAX_USERNAME_LENGTH]
    yield f"{username[:11]}_{user_id[:8]}"
    for n in itertools.count(2):
        suffix = f"_{user_id[:8]}{n}"
        yield f"{username[:MAX_USERNAME_LENGTH - len(suffix)]}{suffix}"


def get_or_create_user(session: Session, user_id: str, username: str) -> User:
    """Fetch the medal winner's User row, creating it for unregistered authors.

    A riff only carries the author's username snapshot; if that name now
    belongs to someone else the new row gets the first free disambiguated
    username.  Each attempt is its own SAVEPOINT, so a taken name never
    aborts the settlement transaction.
    """
    user = session.get(User, user_id)
    if user is not None:
        return user

    candidates = _username_candidates(username, user_id)
    while True:
        candidate = next(candidates)
        if session.scalar(select(User.id).where(User.username == candidate)) is not None:
            continue
        user = User(id=user_id, username=candidate)
        try:
            with session.begin_nested():   # SAVEPOINT
                session.add(user)
                session.flush()
        except IntegrityError:
            # Lost a race for the name, or for the id itself.
            existing = session.get(User, user_id)
            if existing is not None:
                return existing
            continue
        logger.info("Created user %s (%s) during settlement", user_id, candidate)
        return user


def _increment_tally(session: Session, user_id: str, medal: Medal) -> None:
    """``<medal>_medals += 1`` in the database, like the riff like counter."""
    name = _TALLY_COLUMN[medal]
    session.execute(
        update(User)
        .where(User.id == user_id)
        .values(**{name: getattr(User, name) + 1})
        .execution_options(synchronize_session=False)
    )


def settle_day(engine: Engine, day: date) -> SettlementResult:
    """Award medals for *day*'s top three.  Idempotent per day."""
    with storage_session(engine, "settle_day") as session:
        riffs = RiffRepository(session).list_by_day(day)
        standings = rank_riffs(riffs)
        podium = [entry for entry in standings if entry.medal is not None]

        marker = DailySettlement(
            day=day,
            riff_count=len(riffs),
            summary={
                entry.medal.value: {"user_id": entry.user_id, "likes": entry.like_count}
                for entry in podium
            },
        )
        try:
            with session.begin_nested():   # SAVEPOINT
                session.add(marker)
                session.flush()
        except IntegrityError:
            logger.info("Day %s already settled: skipping", day)
            return SettlementResult(day=day, already_settled=True, riff_count=len(riffs))

        for entry in podium:
            get_or_create_user(session, entry.user_id, entry.username)
            _increment_tally(session, entry.user_id, entry.medal)
            session.add(MedalAward(
                day=day,
                rank=entry.rank,
                medal=entry.medal.value,
                user_id=entry.user_id,
                username=entry.username,
                riff_id=entry.riff_id,
                like_count=entry.like_count,
            ))

    logger.info(
        "Settled %s: %d riffs, %d medals awarded", day, len(riffs), len(podium),
    )
    return SettlementResult(day=day, riff_count=len(riffs), awarded=podium)


def settle_pending(engine: Engine, today: date) -> list[SettlementResult]:
    """Settle every closed day (strictly before *today*) not yet settled.

    Oldest first, so a worker that was down for a few days catches up in
    order.  Days that were already settled are left out of the result.  A
    day whose settlement fails is logged and retried on the next run; later
    days are still settled.
    """
    with storage_session(engine, "settle_pending") as session:
        candidate_days = RiffRepository(session).days_with_riffs(before=today)
        settled = set(
            session.scalars(
                select(DailySettlement.day).where(DailySettlement.day < today)
            )
        )

    results = []
    for day in candidate_days:
        if day in settled:
            continue
        try:
            result = settle_day(engine, day)
        except StorageError as exc:
            logger.error("Settlement of %s failed, will retry next run: %s", day, exc)
            continue
        if not result.already_settled:
            results.append(result)
    return results
