"""
riff.engine.snapshots — Immutable Riff Snapshots
=================================================

What the ledger hands back to callers.  ORM rows never leave a session;
callers (routes, the ranking engine, settlement) only ever see these.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import TYPE_CHECKING

from riff.engine.cycle import as_utc

if TYPE_CHECKING:
    from riff.database.models import Riff

__all__ = ["RiffSnapshot", "snapshot_from_row"]


@dataclass(frozen=True, slots=True)
class RiffSnapshot:
    """A consistent read of one riff: like count and voter set together."""

    id: str
    author_id: str
    author_username: str
    content: str
    submission_date: date
    created_at: datetime
    like_count: int = 0
    edited: bool = False
    edited_at: datetime | None = None
    voter_ids: frozenset[str] = field(default_factory=frozenset)
    has_voted: bool = False

    def for_viewer(self, viewer_id: str | None) -> RiffSnapshot:
        """Copy annotated with whether *viewer_id* has voted on this riff."""
        return replace(self, has_voted=viewer_id is not None and viewer_id in self.voter_ids)

    @property
    def editable(self) -> bool:
        return not self.edited and not self.voter_ids

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.author_id,
            "username": self.author_username,
            "content": self.content,
            "date": self.submission_date.isoformat(),
            "created_at": self.created_at.isoformat(),
            "likes": self.like_count,
            "edited": self.edited,
            "edited_at": self.edited_at.isoformat() if self.edited_at else None,
            "has_voted": self.has_voted,
        }


def snapshot_from_row(riff: Riff, voter_ids: Iterable[str] = ()) -> RiffSnapshot:
    """Build a snapshot from an ORM row plus the voter ids read alongside it."""
    return RiffSnapshot(
        id=riff.id,
        author_id=riff.author_id,
        author_username=riff.author_username,
        content=riff.content,
        submission_date=riff.submission_date,
        created_at=as_utc(riff.created_at),
        like_count=riff.like_count,
        edited=riff.edited,
        edited_at=as_utc(riff.edited_at) if riff.edited_at else None,
        voter_ids=frozenset(voter_ids),
    )
