"""YAML settings loading with inheritance support."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from .config import ShelterSettings
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Fields merged key-by-key when a file extends another; all others are replaced.
MERGED_FIELDS = ("patterns", "sources")


@dataclass
class ConfigLoadContext:
    """Context for loading settings files, tracks inheritance chain."""

    current_file: Path
    inheritance_chain: list[Path]

    def derive_path(self, relative_path: str) -> Path:
        """Resolve relative path from current settings file location."""
        if Path(relative_path).is_absolute():
            return Path(relative_path)
        return (self.current_file.parent / relative_path).resolve()


class ConfigLoader:
    """
    Load ``ShelterSettings`` from YAML files.

    A file may name one or more base files under ``extends``. Bases are
    loaded first and the extending file overrides them; ``patterns`` and
    ``sources`` tables are merged and ``modes`` tables are merged per mode.
    """

    def __init__(self, base_path: Optional[Path] = None):
        self.base_path = Path(base_path) if base_path else Path.cwd()

    def load(self, config_path: Union[str, Path]) -> ShelterSettings:
        """
        Load settings from file with full inheritance support.

        Args:
            config_path: Path to a settings YAML file

        Returns:
            Validated ShelterSettings

        Raises:
            ConfigurationError: If the file is missing, malformed, invalid or
                its inheritance chain is circular
        """
        config_path = Path(config_path)
        if not config_path.is_absolute():
            config_path = self.base_path / config_path

        context = ConfigLoadContext(current_file=config_path, inheritance_chain=[])
        data = self._load_file(config_path, context)

        try:
            settings = ShelterSettings(**data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Settings validation failed for {config_path}: {e}",
                config_file=str(config_path),
            ) from e

        logger.info(f"Loaded settings from {config_path}")
        return settings

    def load_dict(self, data: dict[str, Any]) -> ShelterSettings:
        """Validate an in-memory settings mapping."""
        try:
            return ShelterSettings(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Settings validation failed: {e}") from e

    def _load_file(self, config_path: Path, context: ConfigLoadContext) -> dict[str, Any]:
        resolved_path = config_path.resolve()
        resolved_chain = [p.resolve() for p in context.inheritance_chain]

        if resolved_path in resolved_chain:
            chain_str = " -> ".join(
                str(p) for p in context.inheritance_chain + [config_path]
            )
            raise ConfigurationError(
                f"Circular inheritance detected: {chain_str}",
                config_file=str(config_path),
            )

        if not config_path.exists():
            raise ConfigurationError(
                f"Settings file not found: {config_path}",
                config_file=str(config_path),
                recovery_suggestions=["Check the --config path or ENVSHELTER_CONFIG"],
            )

        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {config_path}: {e}", config_file=str(config_path)
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Settings file {config_path} must contain a mapping at the top level",
                config_file=str(config_path),
            )

        extends = data.pop("extends", None)
        if not extends:
            return data

        new_context = ConfigLoadContext(
            current_file=config_path,
            inheritance_chain=context.inheritance_chain + [config_path],
        )
        extends_list = extends if isinstance(extends, list) else [extends]

        merged: dict[str, Any] = {}
        for base_path_str in extends_list:
            base_path = new_context.derive_path(str(base_path_str))
            merged = merge_settings(merged, self._load_file(base_path, new_context))
        return merge_settings(merged, data)

    def validate_file(self, config_path: Union[str, Path]) -> list[str]:
        """
        Validate a settings file without raising.

        Returns:
            List of validation error messages (empty if valid)
        """
        try:
            self.load(config_path)
        except ConfigurationError as e:
            return [e.message]
        return []


def merge_settings(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge two raw settings mappings, ``override`` winning."""
    merged = dict(base)
    for key, value in override.items():
        if key in MERGED_FIELDS and isinstance(value, dict):
            merged[key] = {**(merged.get(key) or {}), **value}
        elif key == "modes" and isinstance(value, dict):
            modes = {name: dict(table) for name, table in (merged.get("modes") or {}).items()}
            for name, table in value.items():
                if isinstance(table, dict):
                    modes[name] = {**modes.get(name, {}), **table}
                else:
                    modes[name] = table
            merged["modes"] = modes
        else:
            merged[key] = value
    return merged
