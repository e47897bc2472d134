"""Built-in masking strategies: full, partial and none."""

import logging
from collections.abc import Mapping
from typing import Any

from ..core.exceptions import create_option_error
from ..core.types import MaskContext
from .base import MaskingStrategy, OptionKind, OptionSpec, check_mask_char

logger = logging.getLogger(__name__)


def check_whole_numbers(
    mode: str, options: Mapping[str, Any], names: tuple[str, ...]
) -> None:
    """Reject fractional values for options that count characters."""
    for option in names:
        value = options.get(option)
        if isinstance(value, float) and not value.is_integer():
            raise create_option_error(mode, option, "must be a whole number")


class FullStrategy(MaskingStrategy):
    """Replace every character with the mask character."""

    name = "full"
    description = "Replace all characters with mask character"
    schema = {
        "mask_char": OptionSpec(
            OptionKind.STRING, default="*", description="Character used for masking"
        ),
        "preserve_length": OptionSpec(
            OptionKind.BOOLEAN,
            default=True,
            description="Whether to preserve original value length",
        ),
        "fixed_length": OptionSpec(
            OptionKind.NUMBER,
            min=1,
            description="Fixed output length (overrides preserve_length)",
        ),
    }
    default_options = {"mask_char": "*", "preserve_length": True}

    def validate(self, options: Mapping[str, Any]) -> None:
        check_mask_char(self.name, options)
        check_whole_numbers(self.name, options, ("fixed_length",))

    def apply(self, value: str, context: MaskContext) -> str:
        mask_char = self.get_option("mask_char", "*")
        fixed_length = self.get_option("fixed_length")
        if fixed_length:
            return mask_char * int(fixed_length)
        return mask_char * len(value)


class PartialStrategy(MaskingStrategy):
    """Keep a prefix and suffix visible and mask the middle."""

    name = "partial"
    description = "Show start and end characters, mask the middle"
    schema = {
        "mask_char": OptionSpec(
            OptionKind.STRING, default="*", description="Character used for masking"
        ),
        "show_start": OptionSpec(
            OptionKind.NUMBER,
            default=3,
            min=0,
            description="Number of characters to show at start",
        ),
        "show_end": OptionSpec(
            OptionKind.NUMBER,
            default=3,
            min=0,
            description="Number of characters to show at end",
        ),
        "min_mask": OptionSpec(
            OptionKind.NUMBER,
            default=3,
            min=1,
            description="Minimum number of mask characters (if value is long enough)",
        ),
        "fallback_mode": OptionSpec(
            OptionKind.ENUM,
            default="full",
            choices=("full", "none"),
            description="Mode to use when value is too short for partial masking",
        ),
    }
    default_options = {
        "mask_char": "*",
        "show_start": 3,
        "show_end": 3,
        "min_mask": 3,
        "fallback_mode": "full",
    }

    def validate(self, options: Mapping[str, Any]) -> None:
        check_mask_char(self.name, options)
        check_whole_numbers(self.name, options, ("show_start", "show_end", "min_mask"))

    def apply(self, value: str, context: MaskContext) -> str:
        mask_char = self.get_option("mask_char", "*")
        show_start = int(self.get_option("show_start", 3))
        show_end = int(self.get_option("show_end", 3))
        min_mask = int(self.get_option("min_mask", 3))

        length = len(value)
        if length < show_start + show_end + min_mask:
            fallback = self.get_option("fallback_mode", "full")
            logger.debug(
                f"Value for '{context.key}' too short for partial masking "
                f"({length} chars), using fallback '{fallback}'"
            )
            if fallback == "none":
                return value
            return mask_char * length

        middle = mask_char * (length - show_start - show_end)
        return value[:show_start] + middle + value[length - show_end :]


class NoneStrategy(MaskingStrategy):
    """Leave values visible, optionally passing them through a transform."""

    name = "none"
    description = "No masking - show value as-is"
    schema = {
        "transform": OptionSpec(
            OptionKind.CALLABLE,
            description="Optional transform function to apply to value",
        ),
    }
    default_options: Mapping[str, Any] = {}

    def apply(self, value: str, context: MaskContext) -> str:
        transform = self.options.get("transform")
        if transform is not None:
            return transform(value, context)
        return value


BUILTIN_STRATEGIES: dict[str, type[MaskingStrategy]] = {
    FullStrategy.name: FullStrategy,
    PartialStrategy.name: PartialStrategy,
    NoneStrategy.name: NoneStrategy,
}
