"""
riff.constants — Shared Constants
==================================

Single source of truth for the built-in prompt catalog, content limits and
medal presentation.  Import from here instead of duplicating in services
and routes.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Prompt catalog (used when config.yaml doesn't supply one)
# ---------------------------------------------------------------------------
DEFAULT_PROMPTS: tuple[str, ...] = (
    "What's the most ridiculous solution to climate change you can think of?",
    "If you could add one completely useless feature to smartphones, what would it be?",
    "What's the worst possible name for a luxury hotel?",
    "How would you explain the internet to someone from the 1800s?",
    "What's the most awkward superpower you could have?",
    "If animals could leave Yelp reviews for humans, what would they say?",
    "What would be the worst product to add 'smart' technology to?",
)

# ---------------------------------------------------------------------------
# Daily cycle & content limits
# ---------------------------------------------------------------------------
DEFAULT_RESET_HOUR_UTC = 4
MIN_RIFF_LENGTH = 1
MAX_RIFF_LENGTH = 500
MIN_USERNAME_LENGTH = 3
MAX_USERNAME_LENGTH = 20

# ---------------------------------------------------------------------------
# Medal presentation (used by API responses)
# ---------------------------------------------------------------------------
MEDAL_EMOJI: dict[str, str] = {
    "gold": "\U0001f947",    # 🥇
    "silver": "\U0001f948",  # 🥈
    "bronze": "\U0001f949",  # 🥉
}
