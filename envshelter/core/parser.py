"""Reference parser for EDF (dotenv-style) documents.

Produces entries with byte-accurate spans. Value spans include the
surrounding quote characters so that renderers can decide whether to
cover them.
"""

import bisect
import logging
import re
from typing import Optional

from .exceptions import ParseError
from .types import Entry, LineOffsetTable, ParsedDocument, QuoteKind

logger = logging.getLogger(__name__)

ASSIGNMENT_RE = re.compile(
    rb"[ \t]*(?P<comment>#[ \t]*)?(?P<export>export[ \t]+)?"
    rb"(?P<key>[A-Za-z_][A-Za-z0-9_.\-]*)[ \t]*="
)
INLINE_COMMENT_RE = re.compile(rb"(?:^|[ \t])#")

DOUBLE_QUOTE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    '"': '"',
    "\\": "\\",
    "$": "$",
}


def decode_double_quoted(raw: str) -> str:
    """Decode the escape sequences recognised inside double quotes."""
    out: list[str] = []
    i = 0
    while i < len(raw):
        char = raw[i]
        if char == "\\" and i + 1 < len(raw):
            escaped = raw[i + 1]
            out.append(DOUBLE_QUOTE_ESCAPES.get(escaped, "\\" + escaped))
            i += 2
            continue
        out.append(char)
        i += 1
    return "".join(out)


class EdfParser:
    """
    Parse EDF content into entries plus a line offset table.

    Supported syntax: ``KEY=value``, ``export KEY=value``, single quoted
    literals, double quoted values with escapes (which may span lines),
    unquoted values ending at an inline ``#`` comment, and commented-out
    assignments such as ``#KEY=value`` which are flagged ``is_comment``.
    """

    def __init__(self, include_comments: bool = True) -> None:
        self.include_comments = include_comments

    def parse(self, content: bytes) -> ParsedDocument:
        if isinstance(content, str):
            content = content.encode("utf-8")

        line_offsets = LineOffsetTable.from_content(content)
        starts = list(line_offsets)
        entries: list[Entry] = []

        line_number = 1
        while line_number <= len(starts):
            line_start = starts[line_number - 1]
            line_end = self._line_end(content, starts, line_number)
            match = ASSIGNMENT_RE.match(content, line_start, line_end)

            if match is None:
                line_number += 1
                continue

            is_comment = match.group("comment") is not None
            entry = self._parse_assignment(
                content, starts, line_number, line_end, match, is_comment
            )
            if not is_comment or self.include_comments:
                entries.append(entry)
            line_number = entry.value_end_line + 1

        logger.debug(f"Parsed {len(entries)} entries from {len(starts)} lines")
        return ParsedDocument(entries=tuple(entries), line_offsets=line_offsets)

    @staticmethod
    def _line_end(content: bytes, starts: list[int], line_number: int) -> int:
        if line_number < len(starts):
            end = starts[line_number] - 1
        else:
            end = len(content)
        if end > starts[line_number - 1] and content[end - 1 : end] == b"\r":
            end -= 1
        return end

    def _parse_assignment(
        self,
        content: bytes,
        starts: list[int],
        line_number: int,
        line_end: int,
        match: "re.Match[bytes]",
        is_comment: bool,
    ) -> Entry:
        key = match.group("key").decode("ascii")
        position = match.end()
        while position < line_end and content[position : position + 1] in (b" ", b"\t"):
            position += 1

        opener = content[position : position + 1]
        if opener in (b'"', b"'"):
            quote = QuoteKind.DOUBLE if opener == b'"' else QuoteKind.SINGLE
            close = self._find_closing_quote(content, position, opener)
            if close is None:
                if is_comment:
                    # a commented-out line with a stray quote is just text
                    return self._unquoted_entry(
                        content, starts, line_number, line_end, match, key, position, is_comment
                    )
                raise ParseError(
                    f"Unterminated {quote.name.lower()} quoted value for key '{key}'",
                    line_number=line_number,
                )
            raw = content[position + 1 : close].decode("utf-8", errors="replace")
            value = decode_double_quoted(raw) if quote is QuoteKind.DOUBLE else raw
            value_end = close + 1
            return Entry(
                key=key,
                value=value,
                key_start=match.start("key"),
                key_end=match.end("key"),
                value_start=position,
                value_end=value_end,
                line_number=line_number,
                value_end_line=self._line_of(starts, close),
                quote=quote,
                is_exported=match.group("export") is not None,
                is_comment=is_comment,
            )

        return self._unquoted_entry(
            content, starts, line_number, line_end, match, key, position, is_comment
        )

    def _unquoted_entry(
        self,
        content: bytes,
        starts: list[int],
        line_number: int,
        line_end: int,
        match: "re.Match[bytes]",
        key: str,
        position: int,
        is_comment: bool,
    ) -> Entry:
        value_end = line_end
        comment = INLINE_COMMENT_RE.search(content, match.end(), line_end)
        if comment is not None:
            value_end = max(comment.start(), position)
        while value_end > position and content[value_end - 1 : value_end] in (b" ", b"\t"):
            value_end -= 1

        return Entry(
            key=key,
            value=content[position:value_end].decode("utf-8", errors="replace"),
            key_start=match.start("key"),
            key_end=match.end("key"),
            value_start=position,
            value_end=value_end,
            line_number=line_number,
            value_end_line=line_number,
            quote=QuoteKind.NONE,
            is_exported=match.group("export") is not None,
            is_comment=is_comment,
        )

    @staticmethod
    def _find_closing_quote(content: bytes, opening: int, quote: bytes) -> Optional[int]:
        i = opening + 1
        while i < len(content):
            char = content[i : i + 1]
            if char == b"\\" and quote == b'"':
                i += 2
                continue
            if char == quote:
                return i
            i += 1
        return None

    @staticmethod
    def _line_of(starts: list[int], position: int) -> int:
        return bisect.bisect_right(starts, position)
