"""Unit tests for Settings class and get_settings function."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from contextrail.config import ConfigError, get_settings, reload_settings
from contextrail.config.settings import Settings

REPO_CONFIG_DIR = Path(__file__).resolve().parents[3] / "config"


class TestSettings:
    """Tests for Settings model."""

    def test_default_values(self) -> None:
        """Settings has sensible defaults."""
        settings = Settings()
        assert settings.app_name == "contextrail"
        assert settings.debug is False
        assert settings.effective_logging.level == "INFO"

    def test_pipeline_defaults(self) -> None:
        """Pipeline configuration has defaults."""
        settings = Settings()
        assert settings.pipeline.default_preset == "default"
        assert list(settings.pipeline.sequential.stages) == [
            "message-analysis",
            "session-context",
            "memory-context",
            "social-context",
            "personality-context",
        ]

    def test_observability_defaults(self) -> None:
        """Observability configuration has defaults."""
        settings = Settings()
        assert settings.observability.logging.level == "INFO"
        assert settings.observability.logging.redact_pii is True
        assert settings.observability.metrics.enabled is True

    def test_debug_forces_debug_logging(self) -> None:
        """debug = true lowers the effective level without touching the table."""
        settings = Settings(debug=True)

        assert settings.effective_logging.level == "DEBUG"
        assert settings.effective_logging.format == settings.observability.logging.format
        assert settings.observability.logging.level == "INFO"


class TestGetSettings:
    """Tests for get_settings function."""

    def test_returns_settings_instance(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """get_settings returns a Settings instance."""
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        default_toml = config_dir / "default.toml"
        default_toml.write_text("app_name = 'test'")

        monkeypatch.setenv("CONTEXTRAIL_CONFIG_DIR", str(config_dir))
        monkeypatch.setenv("CONTEXTRAIL_ENV", "nonexistent")

        settings = get_settings()
        assert isinstance(settings, Settings)
        assert settings.app_name == "test"

    def test_settings_cached(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """get_settings returns cached instance."""
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "default.toml").write_text("app_name = 'cached'")

        monkeypatch.setenv("CONTEXTRAIL_CONFIG_DIR", str(config_dir))
        monkeypatch.setenv("CONTEXTRAIL_ENV", "nonexistent")

        settings1 = get_settings()
        settings2 = get_settings()
        assert settings1 is settings2

    def test_reload_settings_clears_cache(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """reload_settings returns fresh instance."""
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        default_toml = config_dir / "default.toml"
        default_toml.write_text("app_name = 'original'")

        monkeypatch.setenv("CONTEXTRAIL_CONFIG_DIR", str(config_dir))
        monkeypatch.setenv("CONTEXTRAIL_ENV", "nonexistent")

        settings1 = get_settings()
        assert settings1.app_name == "original"

        default_toml.write_text("app_name = 'updated'")

        settings2 = reload_settings()
        assert settings2.app_name == "updated"

    def test_stage_tables_from_toml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Stage tables keep their TOML order and values."""
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "default.toml").write_text(
            "[pipeline.sequential.stages.second]\n"
            "required = true\n"
            "[pipeline.sequential.stages.first]\n"
            "timeout_ms = 250\n"
        )

        monkeypatch.setenv("CONTEXTRAIL_CONFIG_DIR", str(config_dir))
        monkeypatch.setenv("CONTEXTRAIL_ENV", "nonexistent")

        stages = get_settings().pipeline.sequential.stages
        assert list(stages) == ["second", "first"]
        assert stages["second"].required is True
        assert stages["first"].timeout_ms == 250

    def test_invalid_timeout_rejected(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Non-positive stage timeouts fail validation."""
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "default.toml").write_text(
            "[pipeline.sequential.stages.message-analysis]\ntimeout_ms = 0\n"
        )

        monkeypatch.setenv("CONTEXTRAIL_CONFIG_DIR", str(config_dir))
        monkeypatch.setenv("CONTEXTRAIL_ENV", "nonexistent")

        with pytest.raises(ValidationError):
            get_settings()

    def test_malformed_stage_table_names_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Loader errors surface from get_settings with the file path."""
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "default.toml").write_text(
            "[pipeline.sequential.stages.message-analysis]\ntimeout = 50\n"
        )

        monkeypatch.setenv("CONTEXTRAIL_CONFIG_DIR", str(config_dir))
        monkeypatch.setenv("CONTEXTRAIL_ENV", "nonexistent")

        with pytest.raises(ConfigError, match="default.toml"):
            get_settings()


class TestRepositoryConfig:
    """Tests for the configuration files shipped in config/."""

    def test_all_presets_available(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Every documented concurrent preset is configured."""
        monkeypatch.setenv("CONTEXTRAIL_CONFIG_DIR", str(REPO_CONFIG_DIR))
        monkeypatch.setenv("CONTEXTRAIL_ENV", "nonexistent")

        presets = get_settings().pipeline.concurrent
        assert set(presets) == {"default", "lightweight", "development", "production"}
        assert list(presets["lightweight"].stages) == ["message-analysis", "session-analysis"]
        assert presets["production"].stages["memory-analysis"].timeout_ms == 6000

    def test_development_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Development overrides select the development preset."""
        monkeypatch.setenv("CONTEXTRAIL_CONFIG_DIR", str(REPO_CONFIG_DIR))
        monkeypatch.setenv("CONTEXTRAIL_ENV", "development")

        settings = get_settings()
        assert settings.debug is True
        assert settings.observability.logging.format == "console"
        assert settings.pipeline.default_preset == "development"


class TestEnvironmentVariableOverrides:
    """Tests for environment variable configuration overrides."""

    def test_top_level_override(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Top-level values can be overridden with env vars."""
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "default.toml").write_text("debug = false")

        monkeypatch.setenv("CONTEXTRAIL_CONFIG_DIR", str(config_dir))
        monkeypatch.setenv("CONTEXTRAIL_ENV", "nonexistent")
        monkeypatch.setenv("CONTEXTRAIL_DEBUG", "true")

        settings = get_settings()
        assert settings.debug is True

    def test_nested_override(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Nested values can be overridden with double underscore."""
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "default.toml").write_text("[observability.logging]\nlevel = 'INFO'")

        monkeypatch.setenv("CONTEXTRAIL_CONFIG_DIR", str(config_dir))
        monkeypatch.setenv("CONTEXTRAIL_ENV", "nonexistent")
        monkeypatch.setenv("CONTEXTRAIL_OBSERVABILITY__LOGGING__LEVEL", "DEBUG")

        settings = get_settings()
        assert settings.observability.logging.level == "DEBUG"
