"""
riff.api.errors — Engine errors → HTTP responses
=================================================
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from riff.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RiffException,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[RiffException], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ConflictError: status.HTTP_409_CONFLICT,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: RiffException) -> int:
    for error_type, code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def riff_exception_handler(request: Request, exc: RiffException) -> JSONResponse:
    """Render a :class:`RiffException` as ``{"detail", "type", "info"?}``."""
    code = status_for(exc)
    if code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=code,
        content={
            "detail": exc.message,
            "type": exc.__class__.__name__,
            **({"info": exc.details} if exc.details else {}),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RiffException, riff_exception_handler)
