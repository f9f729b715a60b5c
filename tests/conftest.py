"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of riff.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

from datetime import UTC, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# SQLite doesn't support JSONB natively, but SQLAlchemy's JSON type works.
# We register a custom type compiler so SQLite renders JSONB as TEXT.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402

from riff.database.engine import enable_sqlite_savepoints  # noqa: E402
from riff.database.models import Base  # noqa: E402
from riff.engine.cycle import DailyCycle  # noqa: E402
from riff.services.ledger import RiffLedger, RiffPolicy  # noqa: E402

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent)."""
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()

TEST_PROMPTS = ("Prompt A", "Prompt B", "Prompt C")


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------
class FixedClock:
    """A clock tests can set and advance by hand."""

    def __init__(self, current: datetime) -> None:
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta) -> datetime:
        self.current += timedelta(**delta)
        return self.current


@pytest.fixture
def clock() -> FixedClock:
    """Noon UTC on 2025-01-15 (between two 04:00 resets)."""
    return FixedClock(datetime(2025, 1, 15, 12, 0, tzinfo=UTC))


@pytest.fixture
def cycle(clock) -> DailyCycle:
    return DailyCycle(TEST_PROMPTS, clock=clock)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------
@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Riff tables.

    JSONB columns are transparently mapped to TEXT for SQLite compatibility.
    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def ledger(db_engine, cycle) -> RiffLedger:
    return RiffLedger(db_engine, cycle)


@pytest.fixture
def locking_ledger(db_engine, cycle) -> RiffLedger:
    """Ledger whose first upvote locks editing permanently."""
    return RiffLedger(db_engine, cycle, RiffPolicy(lock_edits_after_first_vote=True))


# ---------------------------------------------------------------------------
# Identity tokens
# ---------------------------------------------------------------------------
def make_token(sub: str = "alice-id", username: str = "alice") -> str:
    """Create a bearer JWT.  Usable as both a fixture helper and a factory."""
    import jwt

    from riff.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode(
        {"sub": sub, "username": username},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


def auth(sub: str = "alice-id", username: str = "alice") -> dict:
    return {"Authorization": f"Bearer {make_token(sub, username)}"}
