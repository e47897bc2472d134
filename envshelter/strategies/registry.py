"""Registry of built-in and user-defined masking strategies."""

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from ..core.exceptions import StrategyDefinitionError, StrategyNotFoundError
from ..core.types import MaskContext
from .base import DefinedStrategy, MaskingStrategy, StrategyDefinition
from .builtin import BUILTIN_STRATEGIES

logger = logging.getLogger(__name__)

FALLBACK_MODE = "full"
GLOBAL_MASK_CHAR_MODES = ("full", "partial")

Definition = Union[type[MaskingStrategy], StrategyDefinition]


class StrategyRegistry:
    """
    Registry and factory for masking strategies.

    Definitions are stored by name. ``get`` returns a lazily created,
    cached instance per name; ``create`` always returns a fresh one.
    Built-in strategies can be overridden but never removed.
    """

    def __init__(self) -> None:
        self._definitions: dict[str, Definition] = {}
        self._instances: dict[str, MaskingStrategy] = {}
        self.reset()

    def reset(self) -> None:
        """Drop custom definitions and cached instances, keeping only built-ins."""
        self._definitions = dict(BUILTIN_STRATEGIES)
        self._instances = {}

    def define(
        self, name: str, definition: Union[Mapping[str, Any], Definition]
    ) -> bool:
        """
        Register a strategy under ``name``.

        Args:
            name: Strategy name
            definition: A MaskingStrategy subclass, a StrategyDefinition, or a
                mapping with at least an ``apply`` callable

        Returns:
            True once registered

        Raises:
            StrategyDefinitionError: If the definition is malformed
        """
        if not isinstance(name, str) or not name:
            raise StrategyDefinitionError("Mode name must be a non-empty string")

        resolved: Definition
        if isinstance(definition, type) and issubclass(definition, MaskingStrategy):
            resolved = definition
        elif isinstance(definition, StrategyDefinition):
            resolved = definition
        elif isinstance(definition, Mapping):
            resolved = StrategyDefinition.from_mapping(name, definition)
        else:
            raise StrategyDefinitionError(
                f"Mode '{name}' definition must be a mapping or MaskingStrategy subclass",
                mode=name,
            )

        if self.is_builtin(name):
            logger.info(f"Overriding built-in mode '{name}' with custom definition")

        self._definitions[name] = resolved
        self._instances.pop(name, None)
        logger.debug(f"Defined mode '{name}'")
        return True

    def undefine(self, name: str) -> bool:
        """Remove a custom strategy. Built-ins cannot be removed."""
        if self.is_builtin(name):
            logger.warning(f"Cannot undefine built-in mode '{name}'")
            return False
        if name not in self._definitions:
            return False
        del self._definitions[name]
        self._instances.pop(name, None)
        return True

    def create(
        self, name: str, options: Optional[Mapping[str, Any]] = None
    ) -> MaskingStrategy:
        """
        Create a new, independent strategy instance.

        Raises:
            StrategyNotFoundError: If ``name`` is not registered
            OptionValidationError: If ``options`` are invalid
        """
        definition = self._definitions.get(name)
        if definition is None:
            available = self.list()
            raise StrategyNotFoundError(
                f"Unknown mode '{name}'. Available modes: {', '.join(available)}",
                mode=name,
                available=available,
            )
        if isinstance(definition, StrategyDefinition):
            return DefinedStrategy(definition, options)
        return definition(options)

    def get(self, name: str) -> MaskingStrategy:
        """Return the cached instance for ``name``, creating it on first use."""
        instance = self._instances.get(name)
        if instance is None:
            instance = self.create(name)
            self._instances[name] = instance
        return instance

    def configure(self, name: str, options: Mapping[str, Any]) -> MaskingStrategy:
        """Validate and merge ``options`` into the cached instance for ``name``."""
        strategy = self.get(name)
        strategy.configure(options)
        return strategy

    def apply(
        self, name: str, value: str, context: Optional[MaskContext] = None
    ) -> str:
        """Mask ``value`` with ``name``, falling back to full masking for unknown names."""
        if not self.exists(name):
            logger.warning(f"Unknown mode '{name}', falling back to '{FALLBACK_MODE}'")
            name = FALLBACK_MODE
        return self.get(name).mask(value, context)

    def clone(
        self, instance: MaskingStrategy, options: Optional[Mapping[str, Any]] = None
    ) -> MaskingStrategy:
        return instance.clone(options)

    def exists(self, name: str) -> bool:
        return name in self._definitions

    def is_builtin(self, name: str) -> bool:
        return name in BUILTIN_STRATEGIES

    def list(self) -> list[str]:
        """Registered strategy names, sorted."""
        return sorted(self._definitions)

    def info(self, name: str) -> Optional[dict[str, Any]]:
        if not self.exists(name):
            return None
        info = self.get(name).info()
        info["is_builtin"] = self.is_builtin(name)
        return info

    def info_all(self) -> dict[str, dict[str, Any]]:
        return {name: self.info(name) for name in self.list()}  # type: ignore[misc]

    def get_definition(self, name: str) -> Optional[Definition]:
        return self._definitions.get(name)

    def setup(self, settings: Any) -> None:
        """
        Apply configured mode tables and the global mask character.

        A table carrying an ``apply`` callable defines a new strategy; any
        other table configures an existing one. The global ``mask_char`` is
        then applied to ``full`` and ``partial`` when it was set explicitly.

        Args:
            settings: ShelterSettings or a plain mapping with ``modes`` and
                optionally ``mask_char``
        """
        modes, mask_char = _read_mode_settings(settings)

        for name, table in modes.items():
            if not isinstance(table, Mapping):
                continue
            if table.get("apply") is not None:
                self.define(name, table)
            elif self.exists(name):
                self.configure(name, table)
            else:
                logger.warning(f"Cannot configure unknown mode '{name}'")

        if mask_char is not None:
            for name in GLOBAL_MASK_CHAR_MODES:
                strategy = self.get(name)
                if strategy.options.get("mask_char") is not None:
                    strategy.configure({"mask_char": mask_char})


def _read_mode_settings(settings: Any) -> tuple[Mapping[str, Any], Optional[str]]:
    if settings is None:
        return {}, None
    if isinstance(settings, Mapping):
        return settings.get("modes") or {}, settings.get("mask_char")

    modes = getattr(settings, "modes", None) or {}
    mask_char = None
    # only an explicitly chosen mask_char overrides per-mode tables
    fields_set = getattr(settings, "model_fields_set", None)
    if fields_set is None or "mask_char" in fields_set:
        mask_char = getattr(settings, "mask_char", None)
    return modes, mask_char
