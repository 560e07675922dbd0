"""
Tests for settings loading.
"""

import pytest
from pydantic import ValidationError

from wellness_dashboard.config import Settings
from wellness_dashboard.models import MatchMode


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in Settings.model_fields:
        monkeypatch.delenv(f"WELLNESS_{name.upper()}", raising=False)
    monkeypatch.delenv("WELLNESS_CONFIG", raising=False)


class TestSettings:
    def test_defaults(self):
        settings = Settings.load()

        assert settings.lookback_limit == 20
        assert settings.lookback_days == 7
        assert settings.match_mode is MatchMode.SUBSTRING
        assert settings.update_threshold == 0.15
        assert settings.log_file is None

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "wellness.yaml"
        path.write_text("port: 9000\nmatch_mode: token\ntrend_timeout_seconds: 0.5\n")

        settings = Settings.load(path)

        assert settings.port == 9000
        assert settings.match_mode is MatchMode.TOKEN
        assert settings.trend_timeout_seconds == 0.5

    def test_environment_overrides_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "wellness.yaml"
        path.write_text("lookback_limit: 10\nlog_level: DEBUG\n")
        monkeypatch.setenv("WELLNESS_CONFIG", str(path))
        monkeypatch.setenv("WELLNESS_LOOKBACK_LIMIT", "5")

        settings = Settings.load()

        assert settings.lookback_limit == 5
        assert settings.log_level == "DEBUG"

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert Settings.load(path) == Settings()

    def test_invalid_value(self, monkeypatch):
        monkeypatch.setenv("WELLNESS_UPDATE_THRESHOLD", "1.5")

        with pytest.raises(ValidationError):
            Settings.load()
