"""Glob pattern compilation and mode resolution for keys and source files."""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_MODE = "full"


def glob_to_regex(glob: str) -> "re.Pattern[str]":
    """Translate a glob with ``*`` wildcards into an anchored regex.

    Every character other than ``*`` is matched literally.
    """
    parts = [re.escape(part) for part in glob.split("*")]
    return re.compile(".*".join(parts), re.DOTALL)


def glob_specificity(glob: str) -> int:
    """Score a glob so that longer, less wild patterns rank higher."""
    return len(glob) - 10 * glob.count("*")


@dataclass(frozen=True)
class PatternRule:
    """A compiled glob mapped to a target mode."""

    glob: str
    regex: "re.Pattern[str]"
    mode: str
    specificity: int
    order: int

    @classmethod
    def from_glob(cls, glob: str, mode: str, order: int) -> "PatternRule":
        return cls(
            glob=glob,
            regex=glob_to_regex(glob),
            mode=mode,
            specificity=glob_specificity(glob),
            order=order,
        )

    def matches(self, text: str) -> bool:
        return self.regex.fullmatch(text) is not None


class PatternResolver:
    """
    Resolve the masking mode for a key and an optional source basename.

    Key rules take precedence over source rules, which take precedence over
    the default mode. Among key rules the most specific match wins; equal
    specificity goes to the rule registered first. Source rules are tried
    in registration order.
    """

    def __init__(self) -> None:
        self._key_rules: list[PatternRule] = []
        self._source_rules: list[PatternRule] = []
        self._default_mode = DEFAULT_MODE
        self._compiled = False

    def compile(
        self,
        key_patterns: Optional[Mapping[str, str]] = None,
        source_patterns: Optional[Mapping[str, str]] = None,
        default_mode: Optional[str] = None,
    ) -> None:
        """
        Compile pattern tables, replacing any previously compiled rules.

        Args:
            key_patterns: Mapping of key glob to mode name
            source_patterns: Mapping of source basename glob to mode name
            default_mode: Mode used when no rule matches
        """
        self._key_rules = [
            PatternRule.from_glob(glob, mode, order)
            for order, (glob, mode) in enumerate((key_patterns or {}).items())
        ]
        self._source_rules = [
            PatternRule.from_glob(glob, mode, order)
            for order, (glob, mode) in enumerate((source_patterns or {}).items())
        ]
        self._default_mode = default_mode or DEFAULT_MODE
        self._compiled = True

        logger.debug(
            f"Compiled {len(self._key_rules)} key patterns and "
            f"{len(self._source_rules)} source patterns "
            f"(default mode '{self._default_mode}')"
        )

    @property
    def is_compiled(self) -> bool:
        return self._compiled

    @property
    def default_mode(self) -> str:
        return self._default_mode

    @property
    def key_rules(self) -> tuple[PatternRule, ...]:
        return tuple(self._key_rules)

    @property
    def source_rules(self) -> tuple[PatternRule, ...]:
        return tuple(self._source_rules)

    def clear(self) -> None:
        """Drop all compiled rules and restore the default mode."""
        self._key_rules = []
        self._source_rules = []
        self._default_mode = DEFAULT_MODE
        self._compiled = False

    def resolve_for_key(self, key: str) -> Optional[str]:
        """Return the mode of the most specific key rule matching ``key``."""
        best: Optional[PatternRule] = None
        for rule in self._key_rules:
            if not rule.matches(key):
                continue
            # strict comparison keeps the earliest rule on ties
            if best is None or rule.specificity > best.specificity:
                best = rule
        return best.mode if best is not None else None

    def resolve_for_source(self, basename: Optional[str]) -> Optional[str]:
        """Return the mode of the first source rule matching ``basename``."""
        if not basename:
            return None
        for rule in self._source_rules:
            if rule.matches(basename):
                return rule.mode
        return None

    def determine_mode(self, key: str, source_basename: Optional[str] = None) -> str:
        """Resolve the mode for ``key``: key rules, then source rules, then default."""
        mode = self.resolve_for_key(key)
        if mode is not None:
            return mode
        mode = self.resolve_for_source(source_basename)
        if mode is not None:
            return mode
        return self._default_mode
