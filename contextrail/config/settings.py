"""Root settings for contextrail.

Precedence, highest first: constructor arguments, CONTEXTRAIL_* environment
variables (``__`` separates nested keys), the merged TOML layers, then the
model defaults. Log level and format live only under
``[observability.logging]``; ``debug = true`` raises the level to DEBUG.
"""

from typing import Any

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from contextrail.config.models.observability import LoggingConfig, ObservabilityConfig
from contextrail.config.models.pipeline import PipelineConfig

# Merged TOML layers, installed by get_settings() before Settings is built
_file_config: dict[str, Any] = {}


def set_toml_config(config: dict[str, Any]) -> None:
    global _file_config
    _file_config = config


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """Serves the merged TOML layers as a pydantic-settings source."""

    def get_field_value(
        self, field: Any, field_name: str  # noqa: ARG002
    ) -> tuple[Any, str, bool]:
        value = _file_config.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return dict(_file_config)


class Settings(BaseSettings):
    """Pipeline and observability configuration for one process."""

    model_config = SettingsConfigDict(
        env_prefix="CONTEXTRAIL_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="contextrail", description="Application name")
    debug: bool = Field(default=False, description="Force DEBUG logging")

    pipeline: PipelineConfig = Field(
        default_factory=PipelineConfig,
        description="Sequential pipeline and concurrent presets",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Logging and metrics",
    )

    @property
    def effective_logging(self) -> LoggingConfig:
        """Logging configuration with the debug flag applied."""
        config = self.observability.logging
        if self.debug and config.level != "DEBUG":
            return config.model_copy(update={"level": "DEBUG"})
        return config

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )
