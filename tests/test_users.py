"""
tests/test_users.py — Registration, Profile & Medal History Tests
==================================================================
"""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import UniqueConstraint

from riff.database.models import User
from riff.errors import ConflictError, NotFoundError, ValidationError
from riff.services.settlement import settle_day
from riff.services.users import (
    get_medal_history,
    get_medal_tally,
    get_user,
    get_user_profile,
    register_user,
)


class TestRegisterUser:
    def test_registers(self, db_engine):
        user = register_user(db_engine, "alice-id", "alice")
        assert user.username == "alice"
        assert user.medal_tally() == {"gold": 0, "silver": 0, "bronze": 0}
        assert get_user(db_engine, "alice-id").username == "alice"

    def test_rejects_bad_username(self, db_engine):
        with pytest.raises(ValidationError):
            register_user(db_engine, "alice-id", "a!")

    def test_duplicate_username_conflicts(self, db_engine):
        register_user(db_engine, "alice-id", "alice")
        with pytest.raises(ConflictError, match="taken"):
            register_user(db_engine, "other-id", "alice")

    def test_duplicate_id_conflicts(self, db_engine):
        register_user(db_engine, "alice-id", "alice")
        with pytest.raises(ConflictError, match="already registered"):
            register_user(db_engine, "alice-id", "alice2")

    def test_unknown_user(self, db_engine):
        with pytest.raises(NotFoundError):
            get_user(db_engine, "ghost")

    def test_username_constraint_is_named_like_the_migration(self):
        names = {
            c.name for c in User.__table__.constraints if isinstance(c, UniqueConstraint)
        }
        assert "uq_users_username" in names
        assert not User.__table__.c.username.unique


class TestProfile:
    def test_totals_and_streak(self, db_engine, ledger, clock):
        register_user(db_engine, "alice-id", "alice")
        for _ in range(3):
            riff = ledger.create_riff("alice-id", "alice", "daily riff")
            ledger.vote_on_riff(riff.id, "bob-id", "upvote")
            clock.advance(days=1)

        # Clock is now on the 18th; alice hasn't posted today yet.
        profile = get_user_profile(db_engine, "alice-id", ledger.cycle.today())
        assert profile["username"] == "alice"
        assert profile["total_riffs"] == 3
        assert profile["total_likes"] == 3
        assert profile["current_streak"] == 3

    def test_streak_breaks_on_missed_day(self, db_engine, ledger, clock):
        register_user(db_engine, "alice-id", "alice")
        ledger.create_riff("alice-id", "alice", "one")
        clock.advance(days=2)
        ledger.create_riff("alice-id", "alice", "two")

        profile = get_user_profile(db_engine, "alice-id", ledger.cycle.today())
        assert profile["current_streak"] == 1

    def test_streak_zero_when_lapsed(self, db_engine, ledger, clock):
        register_user(db_engine, "alice-id", "alice")
        ledger.create_riff("alice-id", "alice", "one")
        clock.advance(days=3)
        profile = get_user_profile(db_engine, "alice-id", ledger.cycle.today())
        assert profile["current_streak"] == 0

    def test_unknown_user(self, db_engine):
        with pytest.raises(NotFoundError):
            get_user_profile(db_engine, "ghost", date(2025, 1, 15))


class TestMedalHistory:
    def test_newest_first(self, db_engine, ledger, clock):
        for _ in range(2):
            ledger.create_riff("alice-id", "alice", "daily")
            clock.advance(days=1)
        settle_day(db_engine, date(2025, 1, 15))
        settle_day(db_engine, date(2025, 1, 16))

        history = get_medal_history(db_engine, "alice-id")
        assert [h["date"] for h in history] == ["2025-01-16", "2025-01-15"]
        assert all(h["medal"] == "gold" for h in history)
        assert len(get_medal_history(db_engine, "alice-id", limit=1)) == 1

    def test_profile_shows_settled_medals(self, db_engine, ledger, clock):
        ledger.create_riff("alice-id", "alice", "winner")
        settle_day(db_engine, date(2025, 1, 15))
        profile = get_user_profile(db_engine, "alice-id", date(2025, 1, 16))
        assert profile["medals"]["gold"] == 1

    def test_empty_history(self, db_engine):
        assert get_medal_history(db_engine, "nobody") == []

    def test_tally_counts_each_medal(self, db_engine, ledger, clock):
        ledger.create_riff("alice-id", "alice", "winner")
        clock.advance(minutes=1)
        ledger.create_riff("bob-id", "bob", "runner-up")
        settle_day(db_engine, date(2025, 1, 15))

        tally = get_medal_tally(db_engine, "bob-id")
        assert tally == {
            "user_id": "bob-id",
            "username": "bob",
            "medals": {"gold": 0, "silver": 1, "bronze": 0},
            "total": 1,
        }

    def test_tally_for_unknown_user(self, db_engine):
        with pytest.raises(NotFoundError):
            get_medal_tally(db_engine, "ghost")
