"""
riff.api.main — FastAPI application entry point
================================================

Run with::

    uvicorn riff.api.main:app --reload --port 8000

or ``riff-api``, which reads the port from config.yaml.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from riff import __version__  # noqa: E402
from riff.api.deps import get_config, get_cycle, get_engine  # noqa: E402
from riff.api.errors import register_exception_handlers  # noqa: E402
from riff.api.routes.leaderboard import router as leaderboard_router  # noqa: E402
from riff.api.routes.prompt import router as prompt_router  # noqa: E402
from riff.api.routes.riffs import router as riffs_router  # noqa: E402
from riff.api.routes.users import router as users_router  # noqa: E402
from riff.tasks import settlement_loop  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Allowed CORS origins from ``CORS_ALLOW_ORIGINS`` (comma-separated)."""
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]
    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine, start settlement."""
    cfg = get_config()
    engine = get_engine()
    logger.info("%s API started — engine ready (%s)", cfg.app_name, engine.url.database)

    settlement: asyncio.Task | None = None
    if cfg.settlement_enabled:
        settlement = asyncio.create_task(settlement_loop(engine, get_cycle(cfg)))
    yield
    if settlement is not None:
        settlement.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await settlement
    logger.info("%s API shutting down", cfg.app_name)


app = FastAPI(
    title="Riff API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Mount routers
app.include_router(prompt_router, prefix="/api")
app.include_router(riffs_router, prefix="/api")
app.include_router(leaderboard_router, prefix="/api")
app.include_router(users_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}


def serve() -> None:
    """Run the API under uvicorn on ``api_port`` from config.yaml."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_config().api_port)
