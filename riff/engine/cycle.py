"""
riff.engine.cycle — Daily Cycle Resolver
=========================================

Maps a timestamp to today's day key, today's prompt and the next reset
boundary.  Pure calculation: no DB I/O, no randomness.

* The day key is the UTC calendar date of "now", so every user shares the
  same day regardless of their local timezone.
* The prompt is ``catalog[day_of_year % len(catalog)]`` with a 1-based
  ordinal day (January 1st → 1).
* The reset boundary is the next ``reset_hour:00 UTC`` strictly after
  "now" (04:00 UTC by default).
"""

from __future__ import annotations

import calendar
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Protocol

from riff.constants import DEFAULT_RESET_HOUR_UTC

__all__ = [
    "Clock",
    "DailyCycle",
    "DailyPrompt",
    "SystemClock",
    "as_utc",
    "daily_prompt",
    "month_bounds",
    "next_reset",
    "prompt_for_day",
    "prompt_index",
    "resolve_day",
    "week_bounds",
]


# ---------------------------------------------------------------------------
# Clock collaborator
# ---------------------------------------------------------------------------
class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


def as_utc(moment: datetime) -> datetime:
    """Return *moment* as an aware UTC datetime (naive values are UTC)."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


# ---------------------------------------------------------------------------
# Prompt value object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class DailyPrompt:
    """The prompt for one calendar day."""

    id: str
    text: str
    date: date
    reset_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "date": self.date.isoformat(),
            "reset_at": self.reset_at.isoformat(),
        }


# ---------------------------------------------------------------------------
# Pure resolver functions
# ---------------------------------------------------------------------------
def resolve_day(now: datetime) -> date:
    """Day key for *now*: its UTC calendar date."""
    return as_utc(now).date()


def next_reset(now: datetime, reset_hour: int = DEFAULT_RESET_HOUR_UTC) -> datetime:
    """Next ``reset_hour:00 UTC`` strictly after *now*."""
    current = as_utc(now)
    candidate = datetime.combine(current.date(), time(hour=reset_hour), tzinfo=UTC)
    if candidate <= current:
        candidate += timedelta(days=1)
    return candidate


def _coerce_day(day: date | str) -> date:
    if isinstance(day, datetime):
        return resolve_day(day)
    if isinstance(day, date):
        return day
    return date.fromisoformat(day)


def week_bounds(day: date | str) -> tuple[date, date]:
    """Monday and Sunday of the ISO week containing *day*."""
    start = _coerce_day(day)
    start -= timedelta(days=start.weekday())
    return start, start + timedelta(days=6)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of *month* in *year*."""
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def prompt_index(day: date | str, catalog_size: int) -> int:
    """``day_of_year % catalog_size``."""
    if catalog_size <= 0:
        raise ValueError("prompt catalog must not be empty")
    return _coerce_day(day).timetuple().tm_yday % catalog_size


def prompt_for_day(day: date | str, catalog: Sequence[str]) -> str:
    """Prompt text for *day*.  Same day, same catalog → same prompt."""
    return catalog[prompt_index(day, len(catalog))]


def daily_prompt(
    now: datetime,
    catalog: Sequence[str],
    reset_hour: int = DEFAULT_RESET_HOUR_UTC,
) -> DailyPrompt:
    """Full :class:`DailyPrompt` for the day containing *now*."""
    day = resolve_day(now)
    return DailyPrompt(
        id=f"prompt_{day.isoformat()}",
        text=prompt_for_day(day, catalog),
        date=day,
        reset_at=next_reset(now, reset_hour),
    )


# ---------------------------------------------------------------------------
# DailyCycle: clock + catalog bundle handed to the ledger and routes
# ---------------------------------------------------------------------------
class DailyCycle:
    """Answers "what day is it, and what's the prompt" against a clock."""

    def __init__(
        self,
        catalog: Sequence[str],
        *,
        clock: Clock | None = None,
        reset_hour: int = DEFAULT_RESET_HOUR_UTC,
    ) -> None:
        if not catalog:
            raise ValueError("prompt catalog must not be empty")
        self.catalog = tuple(catalog)
        self.clock = clock or SystemClock()
        self.reset_hour = reset_hour

    def now(self) -> datetime:
        return as_utc(self.clock.now())

    def today(self, now: datetime | None = None) -> date:
        return resolve_day(now or self.now())

    def current_prompt(self, now: datetime | None = None) -> DailyPrompt:
        return daily_prompt(now or self.now(), self.catalog, self.reset_hour)

    def next_reset(self, now: datetime | None = None) -> datetime:
        return next_reset(now or self.now(), self.reset_hour)

    def seconds_until_reset(self, now: datetime | None = None) -> float:
        current = now or self.now()
        return (self.next_reset(current) - as_utc(current)).total_seconds()
