"""
riff.api.routes.prompt — Today's prompt and countdown
======================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from riff.api.deps import get_cycle
from riff.engine.cycle import DailyCycle

router = APIRouter(prefix="/prompt", tags=["prompt"])


@router.get("/today")
def get_todays_prompt(cycle: DailyCycle = Depends(get_cycle)):
    """The day's prompt plus the instant (and seconds) until the next reset."""
    now = cycle.now()
    prompt = cycle.current_prompt(now)
    return {
        **prompt.to_dict(),
        "seconds_until_reset": int(cycle.seconds_until_reset(now)),
    }
