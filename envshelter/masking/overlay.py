"""Map masked values onto display overlay spans.

Columns are byte columns within a line. Quoted values keep their quote
characters visible; only the content between them is covered.
"""

import logging
from collections.abc import Collection, Iterable, Sequence
from typing import Optional, Union

from ..core.types import DEFAULT_HIGHLIGHT_GROUP, LineOffsetTable, MaskedLine, OverlaySpan

logger = logging.getLogger(__name__)

Line = Union[str, bytes]


def _byte_length(line: Line) -> int:
    if isinstance(line, bytes):
        return len(line.rstrip(b"\r\n"))
    return len(line.rstrip("\r\n").encode("utf-8"))


class OverlaySpanMapper:
    """
    Convert masked-span descriptors into per-line overlay spans.

    Args:
        mask_char: Character used to pad multi-line segments whose slice of
            the mask is shorter than the region it covers
        highlight_group: Highlight group attached to every span
    """

    def __init__(
        self, mask_char: str = "*", highlight_group: str = DEFAULT_HIGHLIGHT_GROUP
    ) -> None:
        self.mask_char = mask_char
        self.highlight_group = highlight_group

    def map_entry(
        self,
        mask: MaskedLine,
        line_offsets: LineOffsetTable,
        revealed_lines: Collection[int] = (),
        lines: Optional[Sequence[Line]] = None,
    ) -> list[OverlaySpan]:
        """
        Compute the overlay spans covering one masked value.

        Args:
            mask: Descriptor produced by the masking engine
            line_offsets: Line offset table of the parsed document
            revealed_lines: 1-based line numbers that must stay uncovered
            lines: Current line texts, used to clamp columns to line length

        Returns:
            Spans in line order; empty when any covered line is revealed or
            the value starts past the end of the document
        """
        first, last = mask.line_number, mask.value_end_line
        if any(line in revealed_lines for line in range(first, last + 1)):
            return []

        line_count = len(lines) if lines is not None else len(line_offsets)
        if first < 1 or first > line_count:
            return []

        quoted = mask.quote.is_quoted
        value_col = mask.value_start - line_offsets.get(first, 0)

        if last == first:
            return [self._single_line_span(mask, line_offsets, lines, value_col, quoted)]
        return self._multi_line_spans(mask, line_offsets, lines, line_count, value_col, quoted)

    def map_all(
        self,
        masks: Iterable[MaskedLine],
        line_offsets: LineOffsetTable,
        revealed_lines: Collection[int] = (),
        lines: Optional[Sequence[Line]] = None,
    ) -> list[OverlaySpan]:
        """Map every descriptor and flatten the spans in document order."""
        revealed = set(revealed_lines)
        spans: list[OverlaySpan] = []
        for mask in masks:
            spans.extend(self.map_entry(mask, line_offsets, revealed, lines))
        return spans

    def _single_line_span(
        self,
        mask: MaskedLine,
        line_offsets: LineOffsetTable,
        lines: Optional[Sequence[Line]],
        value_col: int,
        quoted: bool,
    ) -> OverlaySpan:
        line = mask.line_number
        start = value_col + 1 if quoted else value_col
        end = mask.value_end - line_offsets.get(line, 0)
        if quoted:
            end -= 1

        start = max(0, start)
        if lines is not None:
            line_length = _byte_length(lines[line - 1])
            start = min(start, line_length)
            end = min(end, line_length)
        end = max(start, end)
        return OverlaySpan(
            line=line,
            start_col=start,
            end_col=end,
            text=mask.mask,
            highlight=self.highlight_group,
        )

    def _multi_line_spans(
        self,
        mask: MaskedLine,
        line_offsets: LineOffsetTable,
        lines: Optional[Sequence[Line]],
        line_count: int,
        value_col: int,
        quoted: bool,
    ) -> list[OverlaySpan]:
        first, last = mask.line_number, mask.value_end_line
        spans: list[OverlaySpan] = []
        cursor = 0

        for line in range(first, last + 1):
            if line > line_count:
                break

            if line == last:
                start = 0
                end = max(0, mask.value_end - line_offsets.get(last, 0))
                if quoted:
                    end -= 1
            elif line == first:
                start = value_col + 1 if quoted else value_col
                end = self._line_length(line, line_offsets, lines)
            else:
                start = 0
                end = self._line_length(line, line_offsets, lines)

            start = max(0, start)
            end = max(start, end)
            width = end - start

            segment = mask.mask[cursor : cursor + width]
            cursor += width + 1  # one mask character stands for the line break
            if len(segment) < width:
                segment += self.mask_char * (width - len(segment))

            spans.append(
                OverlaySpan(
                    line=line,
                    start_col=start,
                    end_col=end,
                    text=segment,
                    highlight=self.highlight_group,
                )
            )

        return spans

    @staticmethod
    def _line_length(
        line: int, line_offsets: LineOffsetTable, lines: Optional[Sequence[Line]]
    ) -> int:
        if lines is not None:
            return _byte_length(lines[line - 1])
        if line < len(line_offsets):
            return line_offsets[line + 1] - line_offsets[line] - 1
        return 0
