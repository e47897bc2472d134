"""Core types, configuration, parsing and caching for envshelter."""

from .cache import ContentCache, fingerprint
from .config import (
    RuntimeConfig,
    ShelterSettings,
    get_runtime_config,
    is_env_file,
    reset_runtime_config,
)
from .config_loader import ConfigLoader
from .exceptions import (
    ConfigurationError,
    OptionValidationError,
    ParseError,
    ShelterError,
    StrategyDefinitionError,
    StrategyNotFoundError,
)
from .parser import EdfParser
from .patterns import PatternResolver, PatternRule
from .types import (
    Entry,
    LineOffsetTable,
    MaskContext,
    MaskedLine,
    MaskResult,
    OverlaySpan,
    ParsedDocument,
    Parser,
    QuoteKind,
)

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "ContentCache",
    "EdfParser",
    "Entry",
    "LineOffsetTable",
    "MaskContext",
    "MaskResult",
    "MaskedLine",
    "OptionValidationError",
    "OverlaySpan",
    "ParseError",
    "ParsedDocument",
    "Parser",
    "PatternResolver",
    "PatternRule",
    "QuoteKind",
    "RuntimeConfig",
    "ShelterError",
    "ShelterSettings",
    "StrategyDefinitionError",
    "StrategyNotFoundError",
    "fingerprint",
    "get_runtime_config",
    "is_env_file",
    "reset_runtime_config",
]
