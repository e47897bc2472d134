"""Settings model and runtime configuration from environment variables.

``ShelterSettings`` is the user-facing configuration surface (mask
character, default mode, pattern tables, per-mode options). Its values
come from code or from a YAML file via ``ConfigLoader``.

``RuntimeConfig`` carries process-level knobs that are read from the
environment: cache size, log level and format, and the default config
file path.
"""

import fnmatch
import logging
import os
from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE_PATTERNS = [".env", ".env.*", "*.env"]
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
VALID_LOG_FORMATS = {"text", "json"}


class ShelterSettings(BaseModel):
    """Validated masking configuration."""

    model_config = ConfigDict(extra="forbid")

    mask_char: str = Field("*", description="Character used for masking")
    default_mode: str = Field("full", description="Mode used when no pattern matches")
    skip_comments: bool = Field(
        True, description="Do not mask commented-out assignments"
    )
    highlight_group: str = Field(
        "Comment", description="Highlight group renderers use for masked text"
    )
    patterns: dict[str, str] = Field(
        default_factory=dict, description="Key glob to mode name"
    )
    sources: dict[str, str] = Field(
        default_factory=dict, description="Source file basename glob to mode name"
    )
    modes: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="Per-mode option tables or custom definitions"
    )
    env_file_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ENV_FILE_PATTERNS),
        description="Basename globs identifying files that should be masked",
    )
    peek_duration: float = Field(
        3.0, gt=0, description="Seconds a peeked line stays revealed"
    )
    debounce_delay: float = Field(
        0.05, ge=0, description="Seconds to wait before refreshing after an edit"
    )
    cache_size: int = Field(200, ge=1, description="Parsed document cache capacity")

    @field_validator("mask_char")
    @classmethod
    def validate_mask_char(cls, v: str) -> str:
        """Validate mask_char is a single character."""
        if len(v) != 1:
            raise ValueError(f"mask_char must be a single character, got {v!r}")
        return v

    @field_validator("default_mode")
    @classmethod
    def validate_default_mode(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("default_mode cannot be empty")
        return v

    @field_validator("patterns", "sources")
    @classmethod
    def validate_pattern_table(cls, v: dict[str, str]) -> dict[str, str]:
        """Validate pattern tables have non-empty globs and mode names."""
        for glob, mode in v.items():
            if not glob:
                raise ValueError("Pattern globs cannot be empty")
            if not mode:
                raise ValueError(f"Pattern '{glob}' must name a mode")
        return v


def is_env_file(
    path: Union[str, "os.PathLike[str]"], patterns: Optional[list[str]] = None
) -> bool:
    """Check whether the basename of ``path`` matches any env file pattern."""
    basename = PurePath(os.fspath(path)).name
    for pattern in patterns or DEFAULT_ENV_FILE_PATTERNS:
        if fnmatch.fnmatchcase(basename, pattern):
            return True
    return False


@dataclass
class RuntimeConfig:
    """Runtime configuration from environment variables.

    Attributes:
        cache_size: Capacity override for the parsed document cache
        log_level: Log level name for the envshelter logger
        log_format: ``text`` or ``json``
        config_path: Default YAML settings file, if any
    """

    cache_size: Optional[int] = None
    log_level: str = "WARNING"
    log_format: str = "text"
    config_path: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate_cache_size()
        self._validate_log_level()
        self._validate_log_format()

    def _validate_cache_size(self) -> None:
        if self.cache_size is not None and (
            not isinstance(self.cache_size, int) or self.cache_size <= 0
        ):
            logger.warning(
                f"cache_size must be positive integer, got {self.cache_size}, "
                f"using settings default"
            )
            self.cache_size = None

    def _validate_log_level(self) -> None:
        self.log_level = self.log_level.upper()
        if self.log_level not in VALID_LOG_LEVELS:
            logger.warning(
                f"Invalid log_level '{self.log_level}', using 'WARNING'. "
                f"Valid: {sorted(VALID_LOG_LEVELS)}"
            )
            self.log_level = "WARNING"

    def _validate_log_format(self) -> None:
        self.log_format = self.log_format.lower()
        if self.log_format not in VALID_LOG_FORMATS:
            logger.warning(
                f"Invalid log_format '{self.log_format}', using 'text'. "
                f"Valid: {sorted(VALID_LOG_FORMATS)}"
            )
            self.log_format = "text"

    @classmethod
    def from_environment(cls) -> "RuntimeConfig":
        """Load configuration from environment variables.

        Environment Variables:
            ENVSHELTER_CACHE_SIZE: Parsed document cache capacity (positive integer)
            ENVSHELTER_LOG_LEVEL: Log level name
            ENVSHELTER_LOG_FORMAT: ``text`` or ``json``
            ENVSHELTER_CONFIG: Path to a YAML settings file

        Returns:
            RuntimeConfig with values from the environment or defaults
        """
        config = cls(
            cache_size=cls._get_env_int("ENVSHELTER_CACHE_SIZE", None),
            log_level=cls._get_env_string("ENVSHELTER_LOG_LEVEL", "WARNING"),
            log_format=cls._get_env_string("ENVSHELTER_LOG_FORMAT", "text"),
            config_path=os.getenv("ENVSHELTER_CONFIG") or None,
        )
        logger.debug(f"Loaded runtime configuration from environment: {config}")
        return config

    @staticmethod
    def _get_env_string(key: str, default: str) -> str:
        """Get string value from environment with default fallback."""
        value = os.getenv(key)
        if value is None:
            return default
        return value.strip()

    @staticmethod
    def _get_env_int(key: str, default: Optional[int]) -> Optional[int]:
        """Get positive integer value from environment with default fallback."""
        value = os.getenv(key)
        if value is None:
            return default

        try:
            parsed = int(value.strip())
        except ValueError:
            logger.warning(
                f"Environment variable {key}={value} is not a valid integer, "
                f"using default {default}"
            )
            return default
        if parsed <= 0:
            logger.warning(
                f"Environment variable {key}={value} must be positive, using default {default}"
            )
            return default
        return parsed

    def apply_to(self, settings: ShelterSettings) -> ShelterSettings:
        """Return ``settings`` with environment overrides applied."""
        if self.cache_size is None:
            return settings
        return settings.model_copy(update={"cache_size": self.cache_size})

    def to_dict(self) -> dict[str, Any]:
        return {
            "cache_size": self.cache_size,
            "log_level": self.log_level,
            "log_format": self.log_format,
            "config_path": self.config_path,
        }


_runtime_config: Optional[RuntimeConfig] = None


def get_runtime_config() -> RuntimeConfig:
    """Get the process runtime configuration, creating it if needed."""
    global _runtime_config
    if _runtime_config is None:
        _runtime_config = RuntimeConfig.from_environment()
    return _runtime_config


def reset_runtime_config() -> None:
    """Reset the runtime configuration for testing purposes."""
    global _runtime_config
    _runtime_config = None
