"""
riff.config — YAML Configuration Loader
========================================

Reads ``config.yaml`` for gameplay and deployment settings: the prompt
catalog, the daily reset hour, riff length limits and the edit policy.
Secrets (``DATABASE_URL``, ``JWT_SECRET``) stay in the environment / ``.env``.

Usage::

    from riff.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.app_name)          # "Riff"
    print(cfg.reset_hour_utc)    # 4
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from riff.constants import (
    DEFAULT_PROMPTS,
    DEFAULT_RESET_HOUR_UTC,
    MAX_RIFF_LENGTH,
    MIN_RIFF_LENGTH,
)


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class RiffConfig:
    """Immutable configuration loaded from ``config.yaml``.

    Construction validates every value, so a bad catalog or an impossible
    reset hour fails at startup rather than on the first request.
    """

    app_name: str = "Riff"
    prompts: tuple[str, ...] = DEFAULT_PROMPTS
    reset_hour_utc: int = DEFAULT_RESET_HOUR_UTC

    # Riff rules
    min_riff_length: int = MIN_RIFF_LENGTH
    max_riff_length: int = MAX_RIFF_LENGTH
    lock_edits_after_first_vote: bool = False

    # Runtime
    settlement_enabled: bool = True
    api_port: int = 8000

    def __post_init__(self) -> None:
        if not self.prompts:
            raise ValueError("prompts must contain at least one entry")
        if any(not p.strip() for p in self.prompts):
            raise ValueError("prompts must not contain blank entries")
        if not 0 <= self.reset_hour_utc <= 23:
            raise ValueError(
                f"reset_hour_utc must be between 0 and 23, got {self.reset_hour_utc}"
            )
        if self.min_riff_length < 1:
            raise ValueError("min_riff_length must be at least 1")
        if self.max_riff_length < self.min_riff_length:
            raise ValueError("max_riff_length must be >= min_riff_length")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> RiffConfig:
    """Read *path* and return a :class:`RiffConfig` instance.

    Keys missing from the file fall back to the dataclass defaults.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ValueError
        If a value is out of range or the prompt catalog is empty.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    defaults = RiffConfig()
    prompts = raw.get("prompts")

    return RiffConfig(
        app_name=raw.get("app_name", defaults.app_name),
        prompts=tuple(prompts) if prompts is not None else defaults.prompts,
        reset_hour_utc=int(raw.get("reset_hour_utc", defaults.reset_hour_utc)),
        min_riff_length=int(raw.get("min_riff_length", defaults.min_riff_length)),
        max_riff_length=int(raw.get("max_riff_length", defaults.max_riff_length)),
        lock_edits_after_first_vote=bool(
            raw.get("lock_edits_after_first_vote", defaults.lock_edits_after_first_vote)
        ),
        settlement_enabled=bool(
            raw.get("settlement_enabled", defaults.settlement_enabled)
        ),
        api_port=int(raw.get("api_port", defaults.api_port)),
    )
