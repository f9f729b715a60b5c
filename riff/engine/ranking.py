"""
riff.engine.ranking — Leaderboard & Medal Derivation
=====================================================

Pure, stateless derivation of the daily leaderboard from a snapshot of a
day's riffs.  Re-run on every read; O(n log n) in the riff count.

Ordering is a total order so ranks never depend on storage order:
  likes desc → created_at asc (oldest first) → riff id asc

Weekly and monthly boards rank authors by the likes summed over their riffs
in the period, with the same tie-breaks applied to each author's first riff.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from riff.constants import MEDAL_EMOJI
from riff.database.models import Medal
from riff.engine.snapshots import RiffSnapshot

__all__ = [
    "AuthorStanding",
    "LeaderboardEntry",
    "MEDAL_BY_RANK",
    "medal_for_rank",
    "rank_authors",
    "rank_riffs",
]

MEDAL_BY_RANK: dict[int, Medal] = {
    1: Medal.GOLD,
    2: Medal.SILVER,
    3: Medal.BRONZE,
}


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    """One ranked row of a daily leaderboard."""

    riff_id: str
    user_id: str
    username: str
    like_count: int
    rank: int
    medal: Medal | None
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "riff_id": self.riff_id,
            "user_id": self.user_id,
            "username": self.username,
            "today_likes": self.like_count,
            "rank": self.rank,
            "medal": self.medal.value if self.medal else None,
            "medal_emoji": MEDAL_EMOJI.get(self.medal.value) if self.medal else None,
        }


def medal_for_rank(rank: int) -> Medal | None:
    """Gold / silver / bronze for ranks 1 / 2 / 3, otherwise ``None``."""
    return MEDAL_BY_RANK.get(rank)


def _sort_key(riff: RiffSnapshot) -> tuple:
    return (-riff.like_count, riff.created_at, riff.id)


def rank_riffs(riffs: Iterable[RiffSnapshot]) -> list[LeaderboardEntry]:
    """Rank *riffs* into leaderboard entries (rank 1 first)."""
    ordered = sorted(riffs, key=_sort_key)
    return [
        LeaderboardEntry(
            riff_id=riff.id,
            user_id=riff.author_id,
            username=riff.author_username,
            like_count=riff.like_count,
            rank=position,
            medal=medal_for_rank(position),
            created_at=riff.created_at,
        )
        for position, riff in enumerate(ordered, start=1)
    ]


# ---------------------------------------------------------------------------
# Multi-day standings
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class AuthorStanding:
    """One author's totals over a range of days."""

    user_id: str
    username: str
    total_likes: int
    riff_count: int
    rank: int
    medal: Medal | None
    first_riff_at: datetime

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "total_likes": self.total_likes,
            "riff_count": self.riff_count,
            "rank": self.rank,
            "medal": self.medal.value if self.medal else None,
            "medal_emoji": MEDAL_EMOJI.get(self.medal.value) if self.medal else None,
        }


def rank_authors(riffs: Iterable[RiffSnapshot]) -> list[AuthorStanding]:
    """Sum likes per author across *riffs* and rank the authors.

    The username shown is the one on the author's most recent riff.
    """
    totals: dict[str, dict] = {}
    for riff in sorted(riffs, key=lambda r: (r.created_at, r.id)):
        row = totals.setdefault(riff.author_id, {
            "likes": 0,
            "count": 0,
            "first": riff.created_at,
            "first_id": riff.id,
        })
        row["likes"] += riff.like_count
        row["count"] += 1
        row["username"] = riff.author_username

    ordered = sorted(
        totals.items(),
        key=lambda item: (-item[1]["likes"], item[1]["first"], item[1]["first_id"]),
    )
    return [
        AuthorStanding(
            user_id=user_id,
            username=row["username"],
            total_likes=row["likes"],
            riff_count=row["count"],
            rank=position,
            medal=medal_for_rank(position),
            first_riff_at=row["first"],
        )
        for position, (user_id, row) in enumerate(ordered, start=1)
    ]
