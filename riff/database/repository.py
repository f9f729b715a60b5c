"""
riff.database.repository — Riff Persistence
============================================

The one persistence interface the ledger writes through.  Every write that
gates a business rule is a single conditional statement, never a read
followed by a racy write:

* ``insert``       — INSERT guarded by ``uq_riffs_author_day`` (SAVEPOINT +
  IntegrityError → ``False``).
* ``add_voter``    — INSERT into ``riff_votes`` guarded by its composite PK.
* ``remove_voter`` — DELETE; ``rowcount == 0`` means there was no vote.
* ``adjust_like_count`` — in-database ``like_count ± 1`` (clamped at 0) plus
  a version bump, so concurrent votes serialize on the row.
* ``update``       — flush under ``version_id_col``; a concurrent change
  raises :class:`StaleDataError`, surfaced as ``False``.

Reads that return voter sets use one joined SELECT, so a riff's like count
and voters always come from the same statement snapshot.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from riff.database.models import Riff, RiffVote
from riff.engine.snapshots import RiffSnapshot, snapshot_from_row

logger = logging.getLogger(__name__)


class RiffRepository:
    """Riff queries and conditional writes bound to one :class:`Session`."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def insert(self, riff: Riff) -> bool:
        """Insert-if-absent on (author, day).  Returns False on a duplicate."""
        try:
            with self.session.begin_nested():   # SAVEPOINT
                self.session.add(riff)
                self.session.flush()
        except IntegrityError:
            # The SAVEPOINT was rolled back; the outer txn is still alive.
            logger.debug(
                "Duplicate riff rejected: author=%s day=%s",
                riff.author_id, riff.submission_date,
            )
            return False
        return True

    def update(self, riff: Riff) -> bool:
        """Flush pending changes on *riff*.  False if its version moved."""
        try:
            with self.session.begin_nested():
                self.session.add(riff)
                self.session.flush()
        except StaleDataError:
            return False
        return True

    def add_voter(self, riff_id: str, voter_id: str, voted_at: datetime) -> bool:
        """Add-to-set-if-absent.  False if *voter_id* already voted."""
        try:
            with self.session.begin_nested():
                self.session.add(
                    RiffVote(riff_id=riff_id, voter_id=voter_id, voted_at=voted_at)
                )
                self.session.flush()
        except IntegrityError:
            logger.debug("Duplicate vote rejected: riff=%s voter=%s", riff_id, voter_id)
            return False
        return True

    def remove_voter(self, riff_id: str, voter_id: str) -> bool:
        """Remove-from-set.  False if *voter_id* had not voted."""
        result = self.session.execute(
            delete(RiffVote).where(
                RiffVote.riff_id == riff_id,
                RiffVote.voter_id == voter_id,
            )
        )
        return result.rowcount > 0

    def adjust_like_count(
        self, riff_id: str, delta: int, *, voted_at: datetime | None = None
    ) -> None:
        """``like_count += delta`` (never below 0) and bump the version.

        An upvote also stamps ``first_voted_at`` the first time it happens.
        """
        new_count = Riff.like_count + delta
        values: dict = {
            "like_count": case((new_count < 0, 0), else_=new_count),
            "version": Riff.version + 1,
        }
        if voted_at is not None:
            values["first_voted_at"] = func.coalesce(Riff.first_voted_at, voted_at)

        self.session.execute(
            update(Riff)
            .where(Riff.id == riff_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def find_by_id(self, riff_id: str) -> Riff | None:
        return self.session.get(Riff, riff_id, populate_existing=True)

    def find_by_author_and_day(self, author_id: str, day: date) -> Riff | None:
        return self.session.scalar(
            select(Riff).where(
                Riff.author_id == author_id,
                Riff.submission_date == day,
            )
        )

    def has_votes(self, riff_id: str) -> bool:
        return self.session.scalar(
            select(func.count()).select_from(RiffVote).where(RiffVote.riff_id == riff_id)
        ) > 0

    def snapshot(self, riff_id: str) -> RiffSnapshot | None:
        rows = self._select_with_voters(Riff.id == riff_id)
        return rows[0] if rows else None

    def list_by_day(self, day: date) -> list[RiffSnapshot]:
        """All riffs submitted on *day*, newest first."""
        return self._select_with_voters(Riff.submission_date == day)

    def list_between(self, start: date, end: date) -> list[RiffSnapshot]:
        """Riffs submitted from *start* through *end* inclusive, newest first."""
        return self._select_with_voters(Riff.submission_date.between(start, end))

    def list_by_author(self, author_id: str, limit: int | None = None) -> list[RiffSnapshot]:
        """Historical riffs by *author_id*, newest first."""
        ids_stmt = (
            select(Riff.id)
            .where(Riff.author_id == author_id)
            .order_by(Riff.created_at.desc())
        )
        if limit is not None:
            ids_stmt = ids_stmt.limit(limit)
        return self._select_with_voters(Riff.id.in_(ids_stmt.scalar_subquery()))

    def days_with_riffs(self, before: date) -> list[date]:
        """Distinct submission days strictly before *before*, oldest first."""
        return list(
            self.session.scalars(
                select(Riff.submission_date)
                .where(Riff.submission_date < before)
                .distinct()
                .order_by(Riff.submission_date)
            )
        )

    def _select_with_voters(self, criterion) -> list[RiffSnapshot]:
        rows = self.session.execute(
            select(Riff, RiffVote.voter_id)
            .outerjoin(RiffVote, RiffVote.riff_id == Riff.id)
            .where(criterion)
            .order_by(Riff.created_at.desc(), Riff.id)
            .execution_options(populate_existing=True)
        ).all()

        riffs: dict[str, Riff] = {}
        voters: dict[str, set[str]] = defaultdict(set)
        for riff, voter_id in rows:
            riffs.setdefault(riff.id, riff)
            if voter_id is not None:
                voters[riff.id].add(voter_id)

        return [snapshot_from_row(riff, voters[riff_id]) for riff_id, riff in riffs.items()]
