"""Masking strategies and the registry that owns them."""

from .base import (
    DefinedStrategy,
    MaskingStrategy,
    OptionKind,
    OptionSpec,
    StrategyDefinition,
)
from .builtin import BUILTIN_STRATEGIES, FullStrategy, NoneStrategy, PartialStrategy
from .registry import StrategyRegistry

__all__ = [
    "BUILTIN_STRATEGIES",
    "DefinedStrategy",
    "FullStrategy",
    "MaskingStrategy",
    "NoneStrategy",
    "OptionKind",
    "OptionSpec",
    "PartialStrategy",
    "StrategyDefinition",
    "StrategyRegistry",
]
