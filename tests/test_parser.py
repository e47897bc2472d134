"""Tests for the reference EDF parser."""

import pytest

from envshelter.core.exceptions import ParseError
from envshelter.core.parser import EdfParser, decode_double_quoted
from envshelter.core.types import Entry, LineOffsetTable, QuoteKind


class TestLineOffsets:
    """Test line offset computation."""

    def test_offsets(self, parser):
        document = parser.parse(b"LINE1=a\nLINE2=b\nLINE3=c")
        assert list(document.line_offsets) == [0, 8, 16]
        assert document.line_offsets[2] == 8

    def test_trailing_newline_adds_empty_line(self):
        assert list(LineOffsetTable.from_content(b"A=1\n")) == [0, 4]

    def test_one_based_indexing(self):
        table = LineOffsetTable([0, 5])
        with pytest.raises(IndexError):
            table[0]
        with pytest.raises(IndexError):
            table[3]
        assert table.get(3, -1) == -1

    def test_must_be_strictly_increasing(self):
        with pytest.raises(ValueError):
            LineOffsetTable([0, 5, 5])


class TestSimpleAssignments:
    """Test single-line values."""

    def test_unquoted(self, parser):
        (entry,) = parser.parse(b"KEY=unquoted").entries
        assert entry.key == "KEY"
        assert entry.value == "unquoted"
        assert (entry.key_start, entry.key_end) == (0, 3)
        assert (entry.value_start, entry.value_end) == (4, 12)
        assert entry.quote is QuoteKind.NONE
        assert entry.line_number == entry.value_end_line == 1

    def test_double_quoted_span_covers_quotes(self, parser):
        (entry,) = parser.parse(b'KEY="secretvalue"').entries
        assert entry.value == "secretvalue"
        assert (entry.value_start, entry.value_end) == (4, 17)
        assert entry.quote is QuoteKind.DOUBLE

    def test_single_quoted_is_literal(self, parser):
        (entry,) = parser.parse(b"SECRET='my\\nsecret'").entries
        assert entry.value == "my\\nsecret"
        assert entry.quote is QuoteKind.SINGLE
        assert entry.value_start == 7

    def test_export_prefix(self, parser):
        (entry,) = parser.parse(b"export API_KEY=abc123 # comment").entries
        assert entry.is_exported
        assert entry.key == "API_KEY"
        assert entry.value == "abc123"
        assert (entry.value_start, entry.value_end) == (15, 21)

    def test_inline_comment_excluded(self, parser):
        (entry,) = parser.parse(b"DEBUG=true   # turn off in prod").entries
        assert entry.value == "true"
        assert entry.value_end == 10

    def test_hash_without_space_is_part_of_value(self, parser):
        (entry,) = parser.parse(b"COLOR=#ff0000").entries
        assert entry.value == "#ff0000"

    def test_empty_value(self, parser):
        (entry,) = parser.parse(b"EMPTY=").entries
        assert entry.value == ""
        assert entry.value_start == entry.value_end == 6

    def test_empty_value_with_comment(self, parser):
        (entry,) = parser.parse(b"EMPTY= # nothing here").entries
        assert entry.value == ""
        assert entry.value_start == entry.value_end

    def test_spaces_around_equals(self, parser):
        (entry,) = parser.parse(b"KEY = value").entries
        assert entry.value == "value"
        assert entry.value_start == 6

    def test_crlf_line_endings(self, parser):
        first, second = parser.parse(b"A=1\r\nB=2\r\n").entries
        assert first.value == "1"
        assert first.value_end == 3
        assert second.line_number == 2

    def test_utf8_byte_offsets(self, parser):
        first, second = parser.parse("A=héllo\nB=x".encode()).entries
        assert first.value == "héllo"
        assert first.value_end == 8
        assert second.value_start == 11

    def test_accepts_str(self, parser):
        (entry,) = parser.parse("KEY=value").entries
        assert entry.value == "value"


class TestCommentsAndNoise:
    """Test comment handling and ignored lines."""

    def test_comment_and_blank_lines_skipped(self, parser):
        (entry,) = parser.parse(b"# just a comment\n\nKEY=v").entries
        assert entry.line_number == 3

    def test_commented_assignment(self, parser):
        (entry,) = parser.parse(b"#DISABLED=secret").entries
        assert entry.is_comment
        assert entry.key == "DISABLED"
        assert entry.value == "secret"
        assert entry.key_start == 1

    def test_commented_assignment_with_space(self, parser):
        (entry,) = parser.parse(b"# OLD_KEY=value").entries
        assert entry.is_comment
        assert entry.key == "OLD_KEY"

    def test_exclude_comments(self):
        parser = EdfParser(include_comments=False)
        entries = parser.parse(b"#A=1\nB=2").entries
        assert [e.key for e in entries] == ["B"]

    def test_lines_without_assignment_ignored(self, parser):
        entries = parser.parse(b"not an assignment\n1BAD=x\nGOOD=y").entries
        assert [e.key for e in entries] == ["GOOD"]

    def test_dotted_and_dashed_keys(self, parser):
        (entry,) = parser.parse(b"app.db-url=postgres").entries
        assert entry.key == "app.db-url"


class TestQuotedValues:
    """Test escapes and multi-line values."""

    def test_double_quote_escapes(self, parser):
        (entry,) = parser.parse(b'MSG="a\\nb\\t\\"c\\" \\$HOME \\\\"').entries
        assert entry.value == 'a\nb\t"c" $HOME \\'
        assert entry.value_end_line == 1

    def test_multiline_double_quoted(self, parser):
        document = parser.parse(b'CERT="line1\nline2\nline3"\nNEXT=x')
        cert, following = document.entries
        assert cert.value == "line1\nline2\nline3"
        assert cert.line_number == 1
        assert cert.value_end_line == 3
        assert cert.is_multiline
        assert (cert.value_start, cert.value_end) == (5, 24)
        assert list(document.line_offsets) == [0, 12, 18, 25]
        assert following.key == "NEXT"
        assert following.line_number == 4

    def test_assignment_inside_multiline_value_not_parsed(self, parser):
        entries = parser.parse(b'A="x\nB=y\n"').entries
        assert [e.key for e in entries] == ["A"]

    def test_unterminated_quote(self, parser):
        with pytest.raises(ParseError) as exc_info:
            parser.parse(b'OK=1\nBAD="oops')
        assert exc_info.value.line_number == 2
        assert exc_info.value.context["line_number"] == 2

    def test_trailing_text_after_closing_quote(self, parser):
        (entry,) = parser.parse(b'KEY="value" # note').entries
        assert entry.value == "value"
        assert entry.value_end == 11

    def test_decode_unknown_escape_kept(self):
        assert decode_double_quoted("a\\qb") == "a\\qb"


class TestEntryInvariants:
    """Test Entry validation."""

    def test_value_end_before_start(self):
        with pytest.raises(ValueError):
            Entry("K", "", 0, 1, 5, 4, 1, 1)

    def test_end_line_before_line(self):
        with pytest.raises(ValueError):
            Entry("K", "", 0, 1, 2, 2, 3, 2)
