"""Core data types shared by the parser, the masking engine and renderers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Iterator, Optional, Protocol, Sequence, runtime_checkable

DEFAULT_HIGHLIGHT_GROUP = "Comment"


class QuoteKind(IntEnum):
    """Quote style of a parsed value."""

    NONE = 0
    SINGLE = 1
    DOUBLE = 2

    @property
    def is_quoted(self) -> bool:
        return self is not QuoteKind.NONE


@dataclass(frozen=True)
class Entry:
    """One parsed key/value record with byte-accurate position metadata.

    ``value_start``/``value_end`` delimit the value in the raw bytes and
    include the surrounding quote characters when the value is quoted.
    Line numbers are 1-based.
    """

    key: str
    value: str
    key_start: int
    key_end: int
    value_start: int
    value_end: int
    line_number: int
    value_end_line: int
    quote: QuoteKind = QuoteKind.NONE
    is_exported: bool = False
    is_comment: bool = False

    def __post_init__(self) -> None:
        if self.value_end < self.value_start:
            raise ValueError(
                f"value_end ({self.value_end}) must be >= value_start ({self.value_start})"
            )
        if self.value_end_line < self.line_number:
            raise ValueError(
                f"value_end_line ({self.value_end_line}) must be >= "
                f"line_number ({self.line_number})"
            )

    @property
    def is_multiline(self) -> bool:
        return self.value_end_line > self.line_number


class LineOffsetTable:
    """Byte offset of the start of every line, addressed by 1-based line number.

    ``table[1]`` is always the offset of the first line (normally 0).
    Offsets must be strictly increasing.
    """

    __slots__ = ("_offsets",)

    def __init__(self, offsets: Sequence[int] = (0,)) -> None:
        offsets = tuple(offsets)
        for previous, current in zip(offsets, offsets[1:]):
            if current <= previous:
                raise ValueError(
                    f"Line offsets must be strictly increasing, got {previous} then {current}"
                )
        self._offsets = offsets

    @classmethod
    def from_content(cls, content: bytes) -> "LineOffsetTable":
        """Build the table by scanning raw content for line feeds."""
        offsets = [0]
        position = content.find(b"\n")
        while position != -1:
            offsets.append(position + 1)
            position = content.find(b"\n", position + 1)
        return cls(offsets)

    def __getitem__(self, line: int) -> int:
        if not isinstance(line, int) or line < 1 or line > len(self._offsets):
            raise IndexError(f"line {line} is out of range 1..{len(self._offsets)}")
        return self._offsets[line - 1]

    def get(self, line: int, default: int = 0) -> int:
        """Return the offset of ``line`` or ``default`` when out of range."""
        if 1 <= line <= len(self._offsets):
            return self._offsets[line - 1]
        return default

    def __len__(self) -> int:
        return len(self._offsets)

    def __iter__(self) -> Iterator[int]:
        return iter(self._offsets)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LineOffsetTable):
            return self._offsets == other._offsets
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._offsets)

    def __repr__(self) -> str:
        return f"LineOffsetTable({list(self._offsets)!r})"


@dataclass(frozen=True)
class ParsedDocument:
    """Parser output: entries in document order plus the line offset table."""

    entries: tuple[Entry, ...]
    line_offsets: LineOffsetTable


@runtime_checkable
class Parser(Protocol):
    """Contract for EDF parsers consumed by the masking engine.

    Implementations must be pure: the same content always yields an equal
    document. Failures are reported by raising ``ParseError``.
    """

    def parse(self, content: bytes) -> ParsedDocument:
        ...


@dataclass
class MaskContext:
    """Information handed to a strategy's ``apply``."""

    key: str = ""
    value: str = ""
    source: Optional[str] = None
    line_number: int = 0
    quote: QuoteKind = QuoteKind.NONE
    is_comment: bool = False
    mode_options: dict[str, Any] = field(default_factory=dict)
    settings: Optional[Any] = None


@dataclass(frozen=True)
class MaskedLine:
    """Masked-span descriptor produced per entry for the overlay mapper."""

    key: str
    mode: str
    line_number: int
    value_end_line: int
    mask: str
    value_start: int
    value_end: int
    value: str
    quote: QuoteKind = QuoteKind.NONE
    is_comment: bool = False


@dataclass(frozen=True)
class MaskResult:
    """Result of ``MaskEngine.generate_masks``."""

    masks: tuple[MaskedLine, ...]
    line_offsets: LineOffsetTable


@dataclass(frozen=True)
class OverlaySpan:
    """A display region replaced by ``text``.

    ``line`` is 1-based; ``start_col``/``end_col`` are 0-based byte
    columns, end exclusive. ``highlight`` names the highlight group a
    renderer draws ``text`` with.
    """

    line: int
    start_col: int
    end_col: int
    text: str
    highlight: str = DEFAULT_HIGHLIGHT_GROUP

    def __post_init__(self) -> None:
        if self.start_col < 0:
            raise ValueError(f"start_col must be non-negative, got {self.start_col}")
        if self.end_col < self.start_col:
            raise ValueError(
                f"end_col ({self.end_col}) must be >= start_col ({self.start_col})"
            )

    @property
    def width(self) -> int:
        return self.end_col - self.start_col
