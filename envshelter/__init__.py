"""envshelter: layout-preserving masking of secrets in dotenv-style files.

Values are masked by configurable strategies chosen per key or per source
file, and mapped onto byte-accurate overlay spans so a renderer can hide
them without changing the document's layout.
"""

__version__ = "0.1.0"

from .context import ShelterContext, mask_value
from .core import (
    ConfigLoader,
    ConfigurationError,
    ContentCache,
    EdfParser,
    Entry,
    LineOffsetTable,
    MaskContext,
    MaskedLine,
    MaskResult,
    OptionValidationError,
    OverlaySpan,
    ParseError,
    ParsedDocument,
    Parser,
    PatternResolver,
    QuoteKind,
    RuntimeConfig,
    ShelterError,
    ShelterSettings,
    StrategyDefinitionError,
    StrategyNotFoundError,
    fingerprint,
    is_env_file,
)
from .masking import (
    BufferMasker,
    Debouncer,
    InMemoryRenderer,
    MaskEngine,
    OverlayRenderer,
    OverlaySpanMapper,
    PeekController,
    RevealState,
    render_text,
)
from .strategies import (
    MaskingStrategy,
    OptionKind,
    OptionSpec,
    StrategyDefinition,
    StrategyRegistry,
)

__all__ = [
    "BufferMasker",
    "ConfigLoader",
    "ConfigurationError",
    "ContentCache",
    "Debouncer",
    "EdfParser",
    "Entry",
    "InMemoryRenderer",
    "LineOffsetTable",
    "MaskContext",
    "MaskEngine",
    "MaskResult",
    "MaskedLine",
    "MaskingStrategy",
    "OptionKind",
    "OptionSpec",
    "OptionValidationError",
    "OverlayRenderer",
    "OverlaySpan",
    "OverlaySpanMapper",
    "ParseError",
    "ParsedDocument",
    "Parser",
    "PatternResolver",
    "PeekController",
    "QuoteKind",
    "RevealState",
    "RuntimeConfig",
    "ShelterContext",
    "ShelterError",
    "ShelterSettings",
    "StrategyDefinition",
    "StrategyDefinitionError",
    "StrategyNotFoundError",
    "StrategyRegistry",
    "fingerprint",
    "is_env_file",
    "mask_value",
    "render_text",
    "__version__",
]
