"""
tests/test_settlement.py — Medal Settlement Tests
==================================================
Exactly-once settlement of closed days into lifetime medal tallies.
"""

from __future__ import annotations

import asyncio
from datetime import date

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from riff.database.models import DailySettlement, Medal, MedalAward, User
from riff.errors import ConflictError, StorageError
from riff.services.settlement import settle_day, settle_pending
from riff.services.users import register_user
from riff.tasks import run_settlement_once

DAY = date(2025, 1, 15)


@pytest.fixture
def podium(ledger, clock):
    """Four riffs on DAY with likes [3, 2, 1, 0] for carol, bob, alice, dave."""
    authors = [("alice-id", "alice"), ("bob-id", "bob"), ("carol-id", "carol"), ("dave-id", "dave")]
    riffs = {}
    for user_id, username in authors:
        riffs[username] = ledger.create_riff(user_id, username, f"{username}'s riff")
        clock.advance(minutes=1)

    votes = {"carol": 3, "bob": 2, "alice": 1}
    for username, count in votes.items():
        for i in range(count):
            ledger.vote_on_riff(riffs[username].id, f"voter-{i}", "upvote")
    return riffs


def _tally(engine, user_id: str) -> dict[str, int]:
    with Session(engine) as session:
        return session.get(User, user_id).medal_tally()


class TestSettleDay:
    def test_awards_top_three(self, db_engine, podium):
        result = settle_day(db_engine, DAY)

        assert result.already_settled is False
        assert result.riff_count == 4
        assert [(e.username, e.medal) for e in result.awarded] == [
            ("carol", Medal.GOLD),
            ("bob", Medal.SILVER),
            ("alice", Medal.BRONZE),
        ]
        assert _tally(db_engine, "carol-id") == {"gold": 1, "silver": 0, "bronze": 0}
        assert _tally(db_engine, "bob-id") == {"gold": 0, "silver": 1, "bronze": 0}
        assert _tally(db_engine, "alice-id") == {"gold": 0, "silver": 0, "bronze": 1}

    def test_fourth_place_gets_nothing(self, db_engine, podium):
        settle_day(db_engine, DAY)
        with Session(db_engine) as session:
            assert session.get(User, "dave-id") is None

    def test_is_idempotent(self, db_engine, podium):
        settle_day(db_engine, DAY)
        again = settle_day(db_engine, DAY)

        assert again.already_settled is True
        assert again.awarded == []
        assert _tally(db_engine, "carol-id")["gold"] == 1
        with Session(db_engine) as session:
            assert session.scalar(select(func.count()).select_from(MedalAward)) == 3

    def test_increments_registered_users(self, db_engine, podium):
        register_user(db_engine, "carol-id", "carol")
        settle_day(db_engine, DAY)
        assert _tally(db_engine, "carol-id")["gold"] == 1

    def test_username_collision_is_disambiguated(self, db_engine, podium):
        # Someone else already owns "bob".
        register_user(db_engine, "other-id", "bob")
        settle_day(db_engine, DAY)
        with Session(db_engine) as session:
            assert session.get(User, "bob-id").username == "bob_bob-id"
            assert session.get(User, "other-id").silver_medals == 0

    def test_fallback_username_collision_picks_a_free_name(self, db_engine, ledger):
        register_user(db_engine, "alex-id", "alex")
        register_user(db_engine, "other-id", "alex_abcdefgh")
        ledger.create_riff("abcdefgh-zz", "alex", "winning riff")

        result = settle_day(db_engine, DAY)

        assert [e.user_id for e in result.awarded] == ["abcdefgh-zz"]
        with Session(db_engine) as session:
            winner = session.get(User, "abcdefgh-zz")
            assert winner.username == "alex_abcdefgh2"
            assert winner.gold_medals == 1
            assert session.get(DailySettlement, DAY) is not None

    def test_tally_increments_accumulate(self, db_engine, ledger, clock):
        register_user(db_engine, "alice-id", "alice")
        for _ in range(2):
            ledger.create_riff("alice-id", "alice", "daily")
            clock.advance(days=1)
        settle_day(db_engine, date(2025, 1, 15))
        settle_day(db_engine, date(2025, 1, 16))
        assert _tally(db_engine, "alice-id") == {"gold": 2, "silver": 0, "bronze": 0}

    def test_settled_standings_stay_frozen(self, db_engine, ledger, clock, podium):
        clock.advance(days=1)
        settle_pending(db_engine, today=date(2025, 1, 16))

        with pytest.raises(ConflictError):
            ledger.vote_on_riff(podium["alice"].id, "late-voter", "upvote")

        board = ledger.leaderboard_for_day(DAY)
        with Session(db_engine) as session:
            awards = session.scalars(select(MedalAward).order_by(MedalAward.rank)).all()
            assert [(a.user_id, a.like_count) for a in awards] == [
                (e.user_id, e.like_count) for e in board[:3]
            ]

    def test_empty_day_is_marked_settled(self, db_engine):
        result = settle_day(db_engine, date(2025, 1, 1))
        assert result.riff_count == 0
        assert result.awarded == []
        with Session(db_engine) as session:
            assert session.get(DailySettlement, date(2025, 1, 1)) is not None

    def test_summary_records_podium(self, db_engine, podium):
        settle_day(db_engine, DAY)
        with Session(db_engine) as session:
            marker = session.get(DailySettlement, DAY)
            assert marker.summary["gold"] == {"user_id": "carol-id", "likes": 3}


class TestSettlePending:
    def test_settles_only_closed_days(self, db_engine, ledger, clock, podium):
        clock.advance(days=1)
        ledger.create_riff("alice-id", "alice", "next day")

        results = settle_pending(db_engine, today=date(2025, 1, 16))
        assert [r.day for r in results] == [DAY]

        with Session(db_engine) as session:
            assert session.get(DailySettlement, date(2025, 1, 16)) is None

    def test_catches_up_oldest_first(self, db_engine, ledger, clock):
        for _ in range(3):
            ledger.create_riff("alice-id", "alice", "daily")
            clock.advance(days=1)

        results = settle_pending(db_engine, today=date(2025, 1, 18))
        assert [r.day for r in results] == [
            date(2025, 1, 15), date(2025, 1, 16), date(2025, 1, 17),
        ]
        assert _tally(db_engine, "alice-id")["gold"] == 3

    def test_second_run_is_a_no_op(self, db_engine, podium):
        settle_pending(db_engine, today=date(2025, 1, 16))
        assert settle_pending(db_engine, today=date(2025, 1, 16)) == []
        assert _tally(db_engine, "carol-id")["gold"] == 1

    def test_failed_day_does_not_block_later_days(self, db_engine, ledger, clock, monkeypatch):
        import riff.services.settlement as settlement_mod

        for _ in range(3):
            ledger.create_riff("alice-id", "alice", "daily")
            clock.advance(days=1)

        real_settle_day = settlement_mod.settle_day

        def _flaky(engine, day):
            if day == date(2025, 1, 16):
                raise StorageError("settle_day")
            return real_settle_day(engine, day)

        monkeypatch.setattr(settlement_mod, "settle_day", _flaky)
        results = settle_pending(db_engine, today=date(2025, 1, 18))

        assert [r.day for r in results] == [date(2025, 1, 15), date(2025, 1, 17)]
        with Session(db_engine) as session:
            assert session.get(DailySettlement, date(2025, 1, 16)) is None

        monkeypatch.setattr(settlement_mod, "settle_day", real_settle_day)
        retried = settle_pending(db_engine, today=date(2025, 1, 18))
        assert [r.day for r in retried] == [date(2025, 1, 16)]
        assert _tally(db_engine, "alice-id")["gold"] == 3

    def test_run_once_from_async_code(self, db_engine, cycle, clock, podium):
        clock.advance(days=1)
        results = asyncio.run(run_settlement_once(db_engine, cycle))
        assert [r.day for r in results] == [DAY]


class TestSettlementLoop:
    def test_failed_run_is_logged_and_loop_sleeps_until_reset(
        self, db_engine, cycle, monkeypatch, caplog
    ):
        import riff.tasks as tasks_mod

        def _fail(engine, today):
            raise RuntimeError("db exploded")

        delays = []

        async def _stop_after_first_sleep(delay):
            delays.append(delay)
            raise asyncio.CancelledError

        monkeypatch.setattr(tasks_mod, "settle_pending", _fail)
        monkeypatch.setattr(tasks_mod.asyncio, "sleep", _stop_after_first_sleep)

        with pytest.raises(asyncio.CancelledError):
            asyncio.run(tasks_mod.settlement_loop(db_engine, cycle))

        assert "Settlement run failed" in caplog.text
        # Noon → 04:00 next day, plus the boundary slack.
        assert delays == [16 * 3600 + 1.0]
