# src/fieldflow/core/config.py
"""
Configuration schema and loading for fieldflow.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.

Example settings.yaml:
    engine:
      unmapped_policy: sentinel
    export:
      version: "1.0.0"
      author: data-team
      tags: [crm, nightly]
    logging:
      level: DEBUG
"""

import os
import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from fieldflow.contracts.enums import UnmappedPolicy

# ${VAR} or ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


class EngineSettings(BaseModel):
    """Resolver behaviour."""

    model_config = {"frozen": True}

    unmapped_policy: UnmappedPolicy = Field(
        default=UnmappedPolicy.SENTINEL,
        description="sentinel: unmatched lookups emit 'NotMapped'; passthrough: emit the source value",
    )


class ExportSettings(BaseModel):
    """Defaults for exported MappingConfiguration documents."""

    model_config = {"frozen": True}

    version: str = Field(
        default="1.0.0",
        description="Version string written into exported configurations",
    )
    author: str | None = Field(
        default=None,
        description="metadata.author of exported configurations",
    )
    description: str | None = Field(
        default=None,
        description="metadata.description of exported configurations",
    )
    tags: tuple[str, ...] = Field(
        default=(),
        description="metadata.tags of exported configurations",
    )

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("export.version must not be empty")
        return v


class LoggingSettings(BaseModel):
    """Log output configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level",
    )
    json_output: bool = Field(
        default=False,
        description="Render logs as JSON lines instead of console output",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class FieldflowSettings(BaseModel):
    """Top-level fieldflow configuration. Every section has defaults."""

    model_config = {"frozen": True}

    engine: EngineSettings = Field(default_factory=EngineSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values."""

    def _expand_string(value: str) -> str:
        def replacer(match: re.Match[str]) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            if match.group(2) is not None:
                return match.group(2)
            # No env var and no default - keep original
            return match.group(0)

        return _ENV_VAR_PATTERN.sub(replacer, value)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _expand_string(value)
        elif isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [_expand_value(item) for item in value]
        else:
            return value

    return {k: _expand_value(v) for k, v in config.items()}


def _lower_keys(value: Any) -> Any:
    # Dynaconf uppercases keys loaded from environment variables
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_lower_keys(item) for item in value]
    return value


def load_settings(config_path: Path) -> FieldflowSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (FIELDFLOW_*) - highest priority
    2. Config file (settings.yaml)
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: FIELDFLOW_ENGINE__UNMAPPED_POLICY for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated FieldflowSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="FIELDFLOW",
        settings_files=[str(config_path)],
        environments=False,  # No [default]/[production] sections
        load_dotenv=False,  # The CLI loads .env itself
        merge_enabled=True,  # Deep merge nested dicts
    )

    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): _lower_keys(v) for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config = _expand_env_vars(raw_config)

    return FieldflowSettings(**raw_config)
