"""
riff.api.deps — FastAPI dependency injection
=============================================
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from riff.config import RiffConfig, load_config
from riff.database.engine import create_db_engine
from riff.engine.cycle import DailyCycle
from riff.services.ledger import RiffLedger, RiffPolicy

_WEAK_SECRETS = frozenset({
    "riff-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> RiffConfig:
    return load_config(os.getenv("RIFF_CONFIG", "config.yaml"))


def get_cycle(config: Annotated[RiffConfig, Depends(get_config)]) -> DailyCycle:
    return DailyCycle(config.prompts, reset_hour=config.reset_hour_utc)


def get_ledger(
    engine: Annotated[Engine, Depends(get_engine)],
    cycle: Annotated[DailyCycle, Depends(get_cycle)],
    config: Annotated[RiffConfig, Depends(get_config)],
) -> RiffLedger:
    return RiffLedger(engine, cycle, RiffPolicy.from_config(config))


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Identity:
    """The caller, as asserted by the identity provider's token."""

    user_id: str
    username: str


def _decode_identity(authorization: str | None) -> Identity:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Token has no subject")
    return Identity(user_id=str(sub), username=str(payload.get("username") or sub))


def get_current_identity(
    authorization: Annotated[str | None, Header()] = None,
) -> Identity:
    """Validate the bearer JWT and return the caller.  Raises 401 if invalid."""
    return _decode_identity(authorization)


def get_optional_identity(
    authorization: Annotated[str | None, Header()] = None,
) -> Identity | None:
    """Like :func:`get_current_identity`, but anonymous callers get ``None``.

    A token that is present but invalid is still rejected.
    """
    if authorization is None:
        return None
    return _decode_identity(authorization)
