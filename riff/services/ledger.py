"""
riff.services.ledger — The Riff Ledger
=======================================

Single writer of riff records.  Enforces every creation / edit / vote rule
and persists through :class:`~riff.database.repository.RiffRepository`.

Rules:
- one riff per author per day (insert-if-absent on ``uq_riffs_author_day``)
- one edit per riff, and only while nobody has a vote on it
- no self-votes; one vote per user per riff; retract only your own vote
- votes only on riffs from the current day
- like count moves ±1 with the voter set, never below 0

Every operation is one short transaction.  Storage failures surface as
:class:`~riff.errors.StorageError`; rule violations as the matching
:mod:`riff.errors` class.  The ledger never recomputes leaderboards on
its own: callers ask for :meth:`RiffLedger.leaderboard` after a mutation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING

from riff.constants import MAX_RIFF_LENGTH, MIN_RIFF_LENGTH
from riff.database.engine import storage_session
from riff.database.models import Riff, VoteDirection
from riff.database.repository import RiffRepository
from riff.engine.cycle import DailyCycle, as_utc, resolve_day
from riff.engine.ranking import AuthorStanding, LeaderboardEntry, rank_authors, rank_riffs
from riff.engine.snapshots import RiffSnapshot, snapshot_from_row
from riff.engine.validation import validate_content
from riff.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from riff.config import RiffConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Policy knobs
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class RiffPolicy:
    """Content limits and the edit-lock rule."""

    min_length: int = MIN_RIFF_LENGTH
    max_length: int = MAX_RIFF_LENGTH
    # False: editing is blocked while the voter set is non-empty.
    # True: the first upvote ever received locks editing for good.
    lock_edits_after_first_vote: bool = False

    @classmethod
    def from_config(cls, cfg: RiffConfig) -> RiffPolicy:
        return cls(
            min_length=cfg.min_riff_length,
            max_length=cfg.max_riff_length,
            lock_edits_after_first_vote=cfg.lock_edits_after_first_vote,
        )


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------
class RiffLedger:
    """Authoritative store and rule-enforcer for riffs."""

    def __init__(
        self,
        engine: Engine,
        cycle: DailyCycle,
        policy: RiffPolicy | None = None,
    ) -> None:
        self.engine = engine
        self.cycle = cycle
        self.policy = policy or RiffPolicy()

    @contextmanager
    def _repository(self, operation: str) -> Iterator[RiffRepository]:
        """One transaction, exposed through the repository."""
        with storage_session(self.engine, operation) as session:
            yield RiffRepository(session)

    def _now(self, now: datetime | None) -> datetime:
        return as_utc(now) if now is not None else self.cycle.now()

    def _validate(self, content: str | None) -> str:
        return validate_content(
            content,
            min_length=self.policy.min_length,
            max_length=self.policy.max_length,
        )

    # -------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------
    def create_riff(
        self,
        author_id: str,
        author_username: str,
        content: str,
        now: datetime | None = None,
    ) -> RiffSnapshot:
        """Submit today's riff for *author_id*.

        Raises ValidationError on bad content, ConflictError if the author
        already has a riff for today.
        """
        text = self._validate(content)
        moment = self._now(now)
        day = resolve_day(moment)

        with self._repository("create_riff") as repo:
            riff = Riff(
                author_id=author_id,
                author_username=author_username,
                content=text,
                submission_date=day,
                like_count=0,
                edited=False,
                created_at=moment,
            )
            if not repo.insert(riff):
                raise ConflictError(
                    "You've already riffed today — one riff per day",
                    details=f"author={author_id} day={day.isoformat()}",
                )
            snapshot = snapshot_from_row(riff)

        logger.info("Riff %s created by %s for %s", snapshot.id, author_id, day)
        return snapshot

    # -------------------------------------------------------------------
    # Edit
    # -------------------------------------------------------------------
    def edit_riff(
        self,
        riff_id: str,
        author_id: str,
        new_content: str,
        now: datetime | None = None,
    ) -> RiffSnapshot:
        """Replace the content of *riff_id* once, before anyone votes on it."""
        moment = self._now(now)

        with self._repository("edit_riff") as repo:
            riff = repo.find_by_id(riff_id)
            if riff is None:
                raise NotFoundError("riff", riff_id)
            if riff.author_id != author_id:
                raise AuthorizationError("You can only edit your own riff", author_id)
            if riff.edited:
                raise ConflictError("This riff has already been edited once")
            if repo.has_votes(riff_id):
                raise ConflictError("Riffs can't be edited once they have votes")
            if self.policy.lock_edits_after_first_vote and riff.first_voted_at is not None:
                raise ConflictError("Riffs can't be edited after receiving a vote")

            riff.content = self._validate(new_content)
            riff.edited = True
            riff.edited_at = moment
            if not repo.update(riff):
                raise ConflictError(
                    "This riff changed while you were editing it",
                    details="A vote landed before the edit could be saved",
                )
            snapshot = snapshot_from_row(riff)

        logger.info("Riff %s edited by %s", riff_id, author_id)
        return snapshot

    # -------------------------------------------------------------------
    # Vote
    # -------------------------------------------------------------------
    def vote_on_riff(
        self,
        riff_id: str,
        voter_id: str,
        direction: VoteDirection | str,
        now: datetime | None = None,
    ) -> RiffSnapshot:
        """Upvote or retract a vote.  Returns the riff as seen by *voter_id*."""
        try:
            direction = VoteDirection(direction)
        except ValueError:
            raise ValidationError(
                "direction", f"Vote direction must be 'upvote' or 'retract', got {direction!r}"
            ) from None
        moment = self._now(now)

        with self._repository("vote_on_riff") as repo:
            riff = repo.find_by_id(riff_id)
            if riff is None:
                raise NotFoundError("riff", riff_id)
            if riff.author_id == voter_id:
                raise AuthorizationError("You can't vote on your own riff", voter_id)
            # Closed days are frozen so their standings match the settled medals.
            if riff.submission_date != resolve_day(moment):
                raise ConflictError(
                    "Voting is closed for this riff",
                    details=f"riff day={riff.submission_date.isoformat()}",
                )

            if direction is VoteDirection.UPVOTE:
                if not repo.add_voter(riff_id, voter_id, moment):
                    raise ConflictError("You've already voted on this riff")
                repo.adjust_like_count(riff_id, +1, voted_at=moment)
            else:
                if not repo.remove_voter(riff_id, voter_id):
                    raise ConflictError("You haven't voted on this riff")
                repo.adjust_like_count(riff_id, -1)

            snapshot = repo.snapshot(riff_id)

        logger.info(
            "Vote %s on riff %s by %s (likes=%d)",
            direction.value, riff_id, voter_id, snapshot.like_count,
        )
        return snapshot.for_viewer(voter_id)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get_riff(self, riff_id: str, viewer_id: str | None = None) -> RiffSnapshot:
        with self._repository("get_riff") as repo:
            snapshot = repo.snapshot(riff_id)
        if snapshot is None:
            raise NotFoundError("riff", riff_id)
        return snapshot.for_viewer(viewer_id)

    def list_riffs_for_day(self, day: date, viewer_id: str | None = None) -> list[RiffSnapshot]:
        with self._repository("list_riffs_for_day") as repo:
            riffs = repo.list_by_day(day)
        return [r.for_viewer(viewer_id) for r in riffs]

    def list_todays_riffs(
        self, viewer_id: str | None = None, now: datetime | None = None
    ) -> list[RiffSnapshot]:
        """Today's riffs, newest first, annotated with the viewer's votes."""
        return self.list_riffs_for_day(resolve_day(self._now(now)), viewer_id)

    def list_user_riffs(self, user_id: str, limit: int | None = None) -> list[RiffSnapshot]:
        """Historical riffs for *user_id*, newest first."""
        if limit is not None and limit <= 0:
            return []
        with self._repository("list_user_riffs") as repo:
            return repo.list_by_author(user_id, limit)

    def leaderboard_for_day(self, day: date) -> list[LeaderboardEntry]:
        return rank_riffs(self.list_riffs_for_day(day))

    def leaderboard(self, now: datetime | None = None) -> list[LeaderboardEntry]:
        """Today's standings, recomputed from the current snapshot."""
        return self.leaderboard_for_day(resolve_day(self._now(now)))

    def leaderboard_for_range(self, start: date, end: date) -> list[AuthorStanding]:
        """Authors ranked by total likes on riffs from *start* through *end*.

        Backs the weekly and monthly boards.  Medals shown here are for
        display only; lifetime tallies come from daily settlement.
        """
        if end < start:
            raise ValidationError(
                "date", f"Range end {end.isoformat()} is before start {start.isoformat()}"
            )
        with self._repository("leaderboard_for_range") as repo:
            riffs = repo.list_between(start, end)
        return rank_authors(riffs)
