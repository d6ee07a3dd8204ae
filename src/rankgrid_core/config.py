"""Configuration loading for rankgrid.

Layer order (later wins):
1) System defaults (hardcoded in the models below)
2) Project config: .rankgrid/config.toml, found by walking up from the start path
3) Explicit config file passed by the caller (e.g. ``--config-file``)

Example::

    [grid]
    default_size = 10

    [rules]
    allow_swap = true

    [engine]
    check_invariants = false
    history_limit = 100

    [log]
    debug = false
    verbosity = "warning"
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from .errors import ConfigError
from .validation import ValidationRules

logger = logging.getLogger(__name__)

PROJECT_CONFIG_DIR = ".rankgrid"
PROJECT_CONFIG_FILE = "config.toml"

_LOG_LEVELS = {"debug", "info", "warning", "error", "critical"}


class GridSettings(BaseModel):
    default_size: int = Field(10, ge=1, description="Slots in a new session grid")

    model_config = ConfigDict(extra="forbid")


class RuleSettings(BaseModel):
    allow_swap: bool = True

    model_config = ConfigDict(extra="forbid")

    def to_rules(self) -> ValidationRules:
        return ValidationRules(allow_swap=self.allow_swap)


class EngineSettings(BaseModel):
    check_invariants: bool = Field(False, description="Audit invariants after every operation")
    history_limit: int = Field(100, ge=0, description="Undo entries kept (0 disables history)")

    model_config = ConfigDict(extra="forbid")


class LogSettings(BaseModel):
    debug: bool = False
    verbosity: str = "warning"

    model_config = ConfigDict(extra="forbid")

    def level(self) -> int:
        if self.debug:
            return logging.DEBUG
        name = self.verbosity.strip().lower()
        if name not in _LOG_LEVELS:
            raise ConfigError(f"log.verbosity must be one of {sorted(_LOG_LEVELS)}, got {self.verbosity!r}")
        return getattr(logging, name.upper())


class EngineConfig(BaseModel):
    """Effective configuration after layering."""

    grid: GridSettings = Field(default_factory=GridSettings)
    rules: RuleSettings = Field(default_factory=RuleSettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    source_files: list[Path] = Field(default_factory=list, exclude=True)

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)


class ConfigLoader:
    """Load and resolve rankgrid configuration."""

    @staticmethod
    def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
        result: dict[str, Any] = dict(base)
        for key, value in overlay.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = ConfigLoader._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    @staticmethod
    def _read_toml_optional(path: Path) -> dict[str, Any]:
        """Read TOML config file; return {} if not found."""
        if not path.exists():
            return {}
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to load TOML from {path}: {e}")
        return data

    @staticmethod
    def find_project_config(start: Path) -> Optional[Path]:
        """Walk up from ``start`` to the first directory holding .rankgrid/config.toml."""
        current = start.resolve()
        if current.is_file():
            current = current.parent
        while True:
            candidate = current / PROJECT_CONFIG_DIR / PROJECT_CONFIG_FILE
            if candidate.exists():
                return candidate
            if current == current.parent:
                return None
            current = current.parent

    @staticmethod
    def from_dict(data: dict[str, Any]) -> EngineConfig:
        try:
            return EngineConfig.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}")

    @staticmethod
    def load(
        start: Optional[Path] = None,
        config_file: Optional[Path] = None,
    ) -> EngineConfig:
        """
        Build the effective config.

        Args:
            start: Directory to search upward from for the project config (defaults to cwd)
            config_file: Explicit config file layered on top of the project config

        Returns:
            EngineConfig with defaults filled in

        Raises:
            ConfigError: If a file is unreadable or holds invalid values
        """
        merged: dict[str, Any] = {}
        sources: list[Path] = []

        project_path = ConfigLoader.find_project_config(start or Path.cwd())
        if project_path is not None:
            merged = ConfigLoader._deep_merge(merged, ConfigLoader._read_toml_optional(project_path))
            sources.append(project_path)

        if config_file is not None:
            if not config_file.exists():
                raise ConfigError(f"Config file not found: {config_file}")
            merged = ConfigLoader._deep_merge(merged, ConfigLoader._read_toml_optional(config_file))
            sources.append(config_file)

        config = ConfigLoader.from_dict(merged)
        config.source_files = sources
        logger.debug("effective config from %s", [str(p) for p in sources] or "defaults")
        return config
