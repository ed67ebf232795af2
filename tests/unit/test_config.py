"""Unit tests for settings and player configuration."""

from pathlib import Path

import pytest

from preroll_player.config import PlayerConfig, TimeMode
from preroll_player.settings import Settings, get_settings, reload_settings


class TestSettings:
    """Test pydantic settings defaults, YAML loading and env overrides."""

    def test_defaults(self):
        settings = Settings()
        assert settings.ad.endpoint == "https://s.magsrv.com/v1/vast.php"
        assert settings.ad.zone_id == "5660526"
        assert settings.ad.timeout_sec == 3.0
        assert settings.ad.skip_delay_sec == 5
        assert settings.media.cdn_domains == ["bunnycdn.com", "b-cdn.net"]
        assert settings.media.default_quality == "auto"

    def test_missing_yaml_falls_back_to_defaults(self, tmp_path):
        settings = Settings.load_from_yaml(tmp_path / "absent.yaml")
        assert settings.ad.zone_id == "5660526"

    def test_yaml_with_environment_overlay(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PREROLL_ENVIRONMENT", raising=False)
        (tmp_path / "config.yaml").write_text(
            "environment: staging\nad:\n  zone_id: '111'\n  timeout_sec: 2.0\n"
        )
        (tmp_path / "config.staging.yaml").write_text("ad:\n  zone_id: '222'\n")

        settings = Settings.load_from_yaml(tmp_path / "config.yaml")

        assert settings.environment == "staging"
        assert settings.ad.zone_id == "222"
        assert settings.ad.timeout_sec == 2.0

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        (tmp_path / "config.yaml").write_text("ad:\n  zone_id: '111'\n")
        monkeypatch.setenv("PREROLL_AD__ZONE_ID", "999")

        settings = Settings.load_from_yaml(tmp_path / "config.yaml")

        assert settings.ad.zone_id == "999"

    def test_deep_merge(self):
        merged = Settings._deep_merge({"a": {"b": 1, "c": 2}, "d": 1}, {"a": {"b": 3}, "e": 4})
        assert merged == {"a": {"b": 3, "c": 2}, "d": 1, "e": 4}

    def test_get_settings_cached_and_reloaded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PREROLL_CONFIG", str(tmp_path / "absent.yaml"))
        reload_settings()
        try:
            assert get_settings() is get_settings()
            first = get_settings()
            assert reload_settings() is not first
        finally:
            get_settings.cache_clear()

    def test_to_dict(self):
        data = Settings().to_dict()
        assert data["ad"]["zone_id"] == "5660526"

    def test_repository_config_file(self):
        path = Path(__file__).parent.parent.parent / "settings" / "config.yaml"
        settings = Settings.load_from_yaml(path)
        assert settings.media.cdn_domains == ["bunnycdn.com", "b-cdn.net"]


class TestPlayerConfig:
    """Test the runtime player configuration."""

    def test_defaults(self):
        config = PlayerConfig()
        assert config.ad_url == "https://s.magsrv.com/v1/vast.php?idzone=5660526"
        assert config.ad_timeout_sec == 3.0
        assert config.cdn_domains == ("bunnycdn.com", "b-cdn.net")
        assert config.time_mode is TimeMode.REAL

    def test_ad_url_with_existing_query(self):
        config = PlayerConfig(ad_endpoint="https://ads.example/vast?fmt=3", ad_zone_id="7")
        assert config.ad_url == "https://ads.example/vast?fmt=3&idzone=7"

    def test_from_settings(self):
        settings = Settings()
        settings.ad.zone_id = "123"
        settings.media.cdn_domains = ["cdn.example.org"]

        config = PlayerConfig.from_settings(settings, time_mode=TimeMode.SIMULATED)

        assert config.ad_zone_id == "123"
        assert config.cdn_domains == ("cdn.example.org",)
        assert config.time_mode is TimeMode.SIMULATED

    @pytest.mark.parametrize("mode", list(TimeMode))
    def test_time_mode_values(self, mode):
        assert TimeMode(mode.value) is mode
