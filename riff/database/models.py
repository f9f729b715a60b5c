"""
riff.database.models — SQLAlchemy 2.0 Data Models
==================================================

Tables:
- users              — Registered players and their lifetime medal tallies
- riffs              — One submission per user per day (versioned rows)
- riff_votes         — The voter set of each riff, one row per (riff, voter)
- daily_settlements  — One row per closed day whose medals were awarded
- medal_awards       — Historical record of every settled medal
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Riff ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class Medal(enum.StrEnum):
    """Awards for daily leaderboard ranks 1–3."""
    GOLD = "gold"
    SILVER = "silver"
    BRONZE = "bronze"


class VoteDirection(enum.StrEnum):
    """What a vote request does to the voter set."""
    UPVOTE = "upvote"
    RETRACT = "retract"


# ---------------------------------------------------------------------------
# Users: one row per registered player
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("username", name="uq_users_username"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str] = mapped_column(String(20), nullable=False)
    gold_medals: Mapped[int] = mapped_column(Integer, default=0)
    silver_medals: Mapped[int] = mapped_column(Integer, default=0)
    bronze_medals: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def medal_tally(self) -> dict[str, int]:
        return {
            Medal.GOLD.value: self.gold_medals or 0,
            Medal.SILVER.value: self.silver_medals or 0,
            Medal.BRONZE.value: self.bronze_medals or 0,
        }

    def __repr__(self) -> str:
        return f"<User id={self.id!r} username={self.username!r}>"


# ---------------------------------------------------------------------------
# Riffs: versioned so concurrent edits/votes never lose an update
# ---------------------------------------------------------------------------
class Riff(Base):
    __tablename__ = "riffs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    author_id: Mapped[str] = mapped_column(String(64), nullable=False)
    author_username: Mapped[str] = mapped_column(String(64), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    submission_date: Mapped[date] = mapped_column(Date, nullable=False)
    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    edited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    edited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    first_voted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    votes: Mapped[list[RiffVote]] = relationship(
        back_populates="riff", cascade="all, delete-orphan"
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        # One riff per author per day: the insert-if-absent guard
        UniqueConstraint("author_id", "submission_date", name="uq_riffs_author_day"),
        Index("ix_riffs_day_likes", "submission_date", "like_count"),
        Index("ix_riffs_author_created", "author_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Riff id={self.id} author={self.author_id!r} "
            f"day={self.submission_date} likes={self.like_count}>"
        )


# ---------------------------------------------------------------------------
# RiffVote: voter set; the composite PK is the add-to-set-if-absent guard
# ---------------------------------------------------------------------------
class RiffVote(Base):
    __tablename__ = "riff_votes"

    riff_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("riffs.id", ondelete="CASCADE"), primary_key=True
    )
    voter_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    voted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    riff: Mapped[Riff] = relationship(back_populates="votes")

    __table_args__ = (
        Index("ix_riff_votes_voter", "voter_id"),
    )

    def __repr__(self) -> str:
        return f"<RiffVote riff={self.riff_id} voter={self.voter_id!r}>"


# ---------------------------------------------------------------------------
# DailySettlement: exactly-once marker for medal settlement
# ---------------------------------------------------------------------------
class DailySettlement(Base):
    __tablename__ = "daily_settlements"

    day: Mapped[date] = mapped_column(Date, primary_key=True)
    riff_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    summary: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    settled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<DailySettlement day={self.day} riffs={self.riff_count}>"


# ---------------------------------------------------------------------------
# MedalAward: one row per medal handed out at settlement
# ---------------------------------------------------------------------------
class MedalAward(Base):
    __tablename__ = "medal_awards"

    day: Mapped[date] = mapped_column(
        Date, ForeignKey("daily_settlements.day", ondelete="CASCADE"), primary_key=True
    )
    rank: Mapped[int] = mapped_column(Integer, primary_key=True)
    medal: Mapped[str] = mapped_column(String(10), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    riff_id: Mapped[str] = mapped_column(String(36), nullable=False)
    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_medal_awards_user_day", "user_id", "day"),
    )

    def __repr__(self) -> str:
        return f"<MedalAward day={self.day} rank={self.rank} user={self.user_id!r}>"
