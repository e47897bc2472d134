"""Base classes and option schemas for masking strategies."""

import copy
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from ..core.exceptions import (
    OptionValidationError,
    StrategyDefinitionError,
    create_option_error,
)
from ..core.types import MaskContext

logger = logging.getLogger(__name__)


class OptionKind(Enum):
    """Kinds of value an option schema entry accepts."""

    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    ENUM = "enum"
    CALLABLE = "callable"


# Type names accepted in mapping-style schemas.
_KIND_ALIASES = {
    "number": OptionKind.NUMBER,
    "int": OptionKind.NUMBER,
    "float": OptionKind.NUMBER,
    "string": OptionKind.STRING,
    "str": OptionKind.STRING,
    "boolean": OptionKind.BOOLEAN,
    "bool": OptionKind.BOOLEAN,
    "enum": OptionKind.ENUM,
    "callable": OptionKind.CALLABLE,
    "function": OptionKind.CALLABLE,
}


@dataclass(frozen=True)
class OptionSpec:
    """Schema entry for a single strategy option."""

    kind: OptionKind
    default: Any = None
    min: Optional[float] = None
    max: Optional[float] = None
    choices: tuple[Any, ...] = ()
    description: str = ""

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any]) -> "OptionSpec":
        """Build a spec from a plain mapping such as ``{"type": "number", "min": 0}``."""
        choices = tuple(data.get("enum") or data.get("choices") or ())
        kind_name = str(data.get("type", "enum" if choices else "string")).lower()
        kind = _KIND_ALIASES.get(kind_name)
        if kind is None:
            raise StrategyDefinitionError(
                f"Option '{name}' has unsupported type '{kind_name}'. "
                f"Valid types: {sorted(set(k.value for k in OptionKind))}"
            )
        if choices and kind is not OptionKind.ENUM:
            kind = OptionKind.ENUM
        return cls(
            kind=kind,
            default=data.get("default"),
            min=data.get("min"),
            max=data.get("max"),
            choices=choices,
            description=data.get("description", ""),
        )

    def check(self, value: Any) -> Optional[str]:
        """Return the violated constraint for ``value``, or None if it is valid."""
        if value is None:
            return None

        if self.kind is OptionKind.NUMBER:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return f"must be number, got {type(value).__name__}"
            if self.min is not None and value < self.min:
                return f"must be >= {self.min}"
            if self.max is not None and value > self.max:
                return f"must be <= {self.max}"
        elif self.kind is OptionKind.STRING:
            if not isinstance(value, str):
                return f"must be string, got {type(value).__name__}"
        elif self.kind is OptionKind.BOOLEAN:
            if not isinstance(value, bool):
                return f"must be boolean, got {type(value).__name__}"
        elif self.kind is OptionKind.CALLABLE:
            if not callable(value):
                return f"must be callable, got {type(value).__name__}"

        if self.choices and value not in self.choices:
            return f"must be one of: {', '.join(str(c) for c in self.choices)}"
        return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.kind.value}
        if self.default is not None and not callable(self.default):
            data["default"] = self.default
        if self.min is not None:
            data["min"] = self.min
        if self.max is not None:
            data["max"] = self.max
        if self.choices:
            data["enum"] = list(self.choices)
        if self.description:
            data["description"] = self.description
        return data


def normalize_schema(schema: Optional[Mapping[str, Any]]) -> dict[str, OptionSpec]:
    """Coerce a schema of OptionSpec objects or plain mappings into OptionSpecs."""
    normalized: dict[str, OptionSpec] = {}
    for name, spec in (schema or {}).items():
        if isinstance(spec, OptionSpec):
            normalized[name] = spec
        elif isinstance(spec, Mapping):
            normalized[name] = OptionSpec.from_mapping(name, spec)
        else:
            raise StrategyDefinitionError(
                f"Schema entry for option '{name}' must be an OptionSpec or a mapping"
            )
    return normalized


def validate_schema(
    mode: str, schema: Mapping[str, OptionSpec], options: Mapping[str, Any]
) -> None:
    """
    Validate ``options`` against ``schema``.

    Options absent from the schema are accepted unchecked.

    Raises:
        OptionValidationError: On the first option that violates its spec
    """
    for option, spec in schema.items():
        constraint = spec.check(options.get(option))
        if constraint is not None:
            raise create_option_error(mode, option, constraint)


def check_mask_char(mode: str, options: Mapping[str, Any]) -> None:
    """Reject a ``mask_char`` that is not exactly one character."""
    mask_char = options.get("mask_char")
    if isinstance(mask_char, str) and len(mask_char) != 1:
        raise create_option_error(mode, "mask_char", "must be a single character")


class MaskingStrategy(ABC):
    """
    Base class for all masking strategies.

    Subclasses declare ``name``, ``description``, an option ``schema`` and
    ``default_options``, and implement ``apply``. ``validate`` and
    ``on_configure`` are optional hooks.
    """

    name: str = ""
    description: str = ""
    schema: Mapping[str, OptionSpec] = {}
    default_options: Mapping[str, Any] = {}

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        self.options: dict[str, Any] = copy.deepcopy(dict(self.default_options))
        if options:
            self.configure(options)

    @abstractmethod
    def apply(self, value: str, context: MaskContext) -> str:
        """
        Produce the replacement text for ``value``.

        Args:
            value: Original value to mask
            context: Entry information; ``context.mode_options`` holds this
                strategy's current options

        Returns:
            Masked text
        """

    def validate(self, options: Mapping[str, Any]) -> None:
        """Strategy-specific option checks; raise OptionValidationError on failure."""

    def on_configure(self, options: Mapping[str, Any]) -> None:
        """Called after options have been merged by ``configure``."""

    def check_options(self, options: Mapping[str, Any]) -> None:
        self.validate(options)
        validate_schema(self.name, self.schema, options)

    def configure(self, options: Mapping[str, Any]) -> "MaskingStrategy":
        """
        Validate and merge ``options`` into the current options.

        Missing options are first filled from schema defaults, then the new
        options override.

        Raises:
            OptionValidationError: If any option is invalid; the strategy is
                left unchanged
        """
        self.check_options(options)

        for key, spec in self.schema.items():
            if self.options.get(key) is None and spec.default is not None:
                self.options[key] = spec.default
        self.options.update(options)

        self.on_configure(options)
        return self

    def get_option(self, key: str, default: Any = None) -> Any:
        """Return an option, falling back to its schema default and then ``default``."""
        value = self.options.get(key)
        if value is not None:
            return value
        spec = self.schema.get(key)
        if spec is not None and spec.default is not None:
            return spec.default
        return default

    def mask(self, value: str, context: Optional[MaskContext] = None) -> str:
        """Apply this strategy with ``context.value`` and ``mode_options`` filled in."""
        if context is None:
            context = MaskContext()
        context.value = value
        context.mode_options = self.options
        return self.apply(value, context)

    def clone(self, options: Optional[Mapping[str, Any]] = None) -> "MaskingStrategy":
        """Return an independent copy with its own options, optionally reconfigured."""
        duplicate = copy.copy(self)
        duplicate.options = copy.deepcopy(self.options)
        if options:
            duplicate.configure(options)
        return duplicate

    def info(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "options": copy.deepcopy(self.options),
            "schema": {key: spec.to_dict() for key, spec in self.schema.items()},
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, options={self.options!r})"


ApplyFunction = Callable[[str, MaskContext], str]


@dataclass
class StrategyDefinition:
    """A user-supplied strategy described by plain callables and data."""

    name: str
    apply: ApplyFunction
    description: str = ""
    schema: dict[str, OptionSpec] = field(default_factory=dict)
    default_options: dict[str, Any] = field(default_factory=dict)
    validate: Optional[Callable[[Mapping[str, Any]], Any]] = None
    on_configure: Optional[Callable[["MaskingStrategy", Mapping[str, Any]], None]] = None
    on_register: Optional[Callable[["MaskingStrategy"], None]] = None

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any]) -> "StrategyDefinition":
        """
        Build a definition from a mapping with at least an ``apply`` callable.

        Raises:
            StrategyDefinitionError: If ``apply`` is missing or not callable
        """
        apply = data.get("apply")
        if apply is None:
            raise StrategyDefinitionError(
                f"Mode '{name}' must have an 'apply' function", mode=name
            )
        if not callable(apply):
            raise StrategyDefinitionError(
                f"Mode '{name}' has a non-callable 'apply'", mode=name
            )
        return cls(
            name=data.get("name") or name,
            apply=apply,
            description=data.get("description") or f"Custom mode: {name}",
            schema=normalize_schema(data.get("schema")),
            default_options=dict(data.get("default_options") or {}),
            validate=data.get("validate"),
            on_configure=data.get("on_configure"),
            on_register=data.get("on_register"),
        )


class DefinedStrategy(MaskingStrategy):
    """Strategy instance backed by a ``StrategyDefinition``."""

    def __init__(
        self,
        definition: StrategyDefinition,
        options: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.definition = definition
        self.name = definition.name
        self.description = definition.description
        self.schema = definition.schema
        self.default_options = definition.default_options
        super().__init__()
        if definition.on_register is not None:
            definition.on_register(self)
        if options:
            self.configure(options)

    def apply(self, value: str, context: MaskContext) -> str:
        return self.definition.apply(value, context)

    def validate(self, options: Mapping[str, Any]) -> None:
        if self.definition.validate is None:
            return
        try:
            result = self.definition.validate(options)
        except ValueError as e:
            raise OptionValidationError(
                f"Invalid options for mode '{self.name}': {e}", mode=self.name
            ) from e
        # validators return a bool or an (ok, message) pair
        message = "rejected by validator"
        if isinstance(result, tuple) and result:
            if len(result) > 1 and result[1]:
                message = str(result[1])
            result = result[0]
        if result is not None and not result:
            raise OptionValidationError(
                f"Invalid options for mode '{self.name}': {message}",
                mode=self.name,
            )

    def on_configure(self, options: Mapping[str, Any]) -> None:
        if self.definition.on_configure is not None:
            self.definition.on_configure(self, options)
