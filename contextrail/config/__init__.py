"""contextrail configuration.

    from contextrail.config import get_settings

    settings = get_settings()
    preset = settings.pipeline.concurrent[settings.pipeline.default_preset]
"""

from functools import lru_cache

from contextrail.config.loader import ConfigError, load_config
from contextrail.config.settings import Settings, set_toml_config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load the TOML layers and build Settings once per process.

    Raises:
        FileNotFoundError: If the config directory or default.toml is missing
        ConfigError: If a [pipeline] table is malformed
        pydantic.ValidationError: If a value fails model validation
    """
    set_toml_config(load_config())
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached Settings and load the configuration again."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["ConfigError", "get_settings", "reload_settings", "Settings"]
