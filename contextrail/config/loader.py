"""Layered TOML loading for contextrail.

Two layers are read from the config directory: ``default.toml`` (required)
and ``{CONTEXTRAIL_ENV}.toml`` (optional), deep-merged in that order.

pydantic silently ignores unknown keys and fills absent tables from model
defaults. For pipeline tables that hides real mistakes (a misspelled
``timeout_ms``, a preset declared without stages that quietly inherits the
default stage set), so every layer's ``[pipeline]`` section is checked here
and errors name the file and table at fault.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

from contextrail.config.models.pipeline import ConcurrentPipelineConfig, StageConfig

CONFIG_DIR_ENV = "CONTEXTRAIL_CONFIG_DIR"
ENVIRONMENT_ENV = "CONTEXTRAIL_ENV"
DEFAULT_ENVIRONMENT = "development"

# How far up from the working directory to look for config/
SEARCH_DEPTH = 5

STAGE_KEYS = frozenset(StageConfig.model_fields)
PRESET_KEYS = frozenset(ConcurrentPipelineConfig.model_fields)
PIPELINE_KEYS = frozenset({"sequential", "concurrent", "default_preset"})


class ConfigError(ValueError):
    """Raised when a configuration file has a malformed pipeline table."""

    def __init__(self, source: Path, table: str, message: str) -> None:
        super().__init__(f"{source}: [{table}] {message}")
        self.source = source
        self.table = table


def get_config_dir() -> Path:
    """Locate the config directory.

    CONTEXTRAIL_CONFIG_DIR wins and must exist. Otherwise the nearest
    ``config/`` at or above the working directory is used.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        path = Path(override)
        if not path.exists():
            raise FileNotFoundError(f"Config directory not found: {override}")
        return path

    current = Path.cwd()
    for _ in range(SEARCH_DEPTH):
        candidate = current / "config"
        if candidate.exists():
            return candidate
        current = current.parent
    return Path("config")


def get_environment() -> str:
    return os.environ.get(ENVIRONMENT_ENV, DEFAULT_ENVIRONMENT)


def load_toml(file_path: Path) -> dict[str, Any]:
    """Read one TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")
    with file_path.open("rb") as f:
        return tomllib.load(f)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base; nested tables merge, other values replace."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _require_table(value: Any, source: Path, table: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(source, table, f"must be a table, got {type(value).__name__}")
    return value


def _check_keys(table: dict[str, Any], allowed: frozenset[str], source: Path, name: str) -> None:
    unknown = sorted(set(table) - allowed)
    if unknown:
        raise ConfigError(
            source, name, f"unknown keys {unknown}; expected some of {sorted(allowed)}"
        )


def _check_stage_tables(stages: Any, source: Path, table: str) -> None:
    for stage, settings in _require_table(stages, source, table).items():
        name = f"{table}.{stage}"
        _check_keys(_require_table(settings, source, name), STAGE_KEYS, source, name)


def check_pipeline_tables(layer: dict[str, Any], source: Path) -> None:
    """Check the key names of one file's [pipeline] section.

    Raises:
        ConfigError: On unknown keys or a stage/preset entry that is not a table
    """
    if "pipeline" not in layer:
        return
    pipeline = _require_table(layer["pipeline"], source, "pipeline")
    _check_keys(pipeline, PIPELINE_KEYS, source, "pipeline")

    if "sequential" in pipeline:
        sequential = _require_table(pipeline["sequential"], source, "pipeline.sequential")
        _check_keys(sequential, frozenset({"stages"}), source, "pipeline.sequential")
        if "stages" in sequential:
            _check_stage_tables(sequential["stages"], source, "pipeline.sequential.stages")

    presets = _require_table(pipeline.get("concurrent", {}), source, "pipeline.concurrent")
    for preset, table in presets.items():
        name = f"pipeline.concurrent.{preset}"
        _check_keys(_require_table(table, source, name), PRESET_KEYS, source, name)
        if "stages" in table:
            _check_stage_tables(table["stages"], source, f"{name}.stages")


def check_presets_complete(config: dict[str, Any], source: Path) -> None:
    """Every preset in the merged configuration must declare at least one stage.

    A declared [pipeline.concurrent] table replaces the built-in presets,
    and a preset without stages would otherwise pick up the model's
    default stage set.

    Raises:
        ConfigError: If a preset has no stages
    """
    presets = config.get("pipeline", {}).get("concurrent", {})
    for preset, table in presets.items():
        if not table.get("stages"):
            raise ConfigError(
                source,
                f"pipeline.concurrent.{preset}",
                "declares no stages; add [pipeline.concurrent."
                f"{preset}.stages.<name>] tables",
            )


def config_layers(config_dir: Path, environment: str) -> list[Path]:
    """Files that make up the configuration, lowest precedence first.

    Raises:
        FileNotFoundError: If default.toml is missing
    """
    default_path = config_dir / "default.toml"
    if not default_path.exists():
        raise FileNotFoundError(
            f"Default configuration file not found: {default_path}. "
            f"Create config/default.toml or set {CONFIG_DIR_ENV}."
        )
    layers = [default_path]
    env_path = config_dir / f"{environment}.toml"
    if env_path.exists():
        layers.append(env_path)
    return layers


def load_config() -> dict[str, Any]:
    """Load, check and merge the configuration layers.

    Raises:
        FileNotFoundError: If the config directory override or default.toml is missing
        ConfigError: If a [pipeline] table is malformed
    """
    config_dir = get_config_dir()
    config: dict[str, Any] = {}
    for path in config_layers(config_dir, get_environment()):
        layer = load_toml(path)
        check_pipeline_tables(layer, path)
        config = deep_merge(config, layer)

    check_presets_complete(config, config_dir)
    return config
