"""
tests/test_config.py — YAML Configuration Loader
=================================================
"""

from __future__ import annotations

import pytest

from riff.config import RiffConfig, load_config
from riff.constants import DEFAULT_PROMPTS


class TestLoadConfig:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        cfg = load_config(path)
        assert cfg == RiffConfig()
        assert cfg.prompts == DEFAULT_PROMPTS
        assert cfg.reset_hour_utc == 4

    def test_overrides(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "app_name: Riffs Club\n"
            "prompts:\n  - one\n  - two\n"
            "reset_hour_utc: 6\n"
            "max_riff_length: 280\n"
            "lock_edits_after_first_vote: true\n"
            "settlement_enabled: false\n",
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.app_name == "Riffs Club"
        assert cfg.prompts == ("one", "two")
        assert cfg.reset_hour_utc == 6
        assert cfg.max_riff_length == 280
        assert cfg.lock_edits_after_first_vote is True
        assert cfg.settlement_enabled is False

    def test_empty_prompt_list_is_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("prompts: []\n", encoding="utf-8")
        with pytest.raises(ValueError, match="at least one"):
            load_config(path)


class TestRiffConfigValidation:
    def test_blank_prompt(self):
        with pytest.raises(ValueError, match="blank"):
            RiffConfig(prompts=("fine", "   "))

    @pytest.mark.parametrize("hour", [-1, 24])
    def test_reset_hour_range(self, hour):
        with pytest.raises(ValueError, match="reset_hour_utc"):
            RiffConfig(reset_hour_utc=hour)

    def test_length_bounds(self):
        with pytest.raises(ValueError):
            RiffConfig(min_riff_length=0)
        with pytest.raises(ValueError):
            RiffConfig(min_riff_length=10, max_riff_length=5)

    def test_is_frozen(self):
        cfg = RiffConfig()
        with pytest.raises(AttributeError):
            cfg.app_name = "other"
