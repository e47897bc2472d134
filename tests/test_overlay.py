"""Tests for mapping masked values onto overlay spans."""

import pytest

from envshelter.core.types import LineOffsetTable, MaskedLine, OverlaySpan, QuoteKind
from envshelter.masking.overlay import OverlaySpanMapper
from envshelter.masking.renderer import InMemoryRenderer, OverlayRenderer, render_text


def mask_for(parser, content, mask=None, index=0):
    document = parser.parse(content)
    entry = document.entries[index]
    return (
        MaskedLine(
            key=entry.key,
            mode="full",
            line_number=entry.line_number,
            value_end_line=entry.value_end_line,
            mask=mask if mask is not None else "*" * len(entry.value),
            value_start=entry.value_start,
            value_end=entry.value_end,
            value=entry.value,
            quote=entry.quote,
            is_comment=entry.is_comment,
        ),
        document.line_offsets,
    )


@pytest.fixture
def mapper():
    return OverlaySpanMapper()


class TestSingleLine:
    """Test single-line values."""

    def test_double_quoted_excludes_quotes(self, mapper, parser):
        mask, offsets = mask_for(parser, b'KEY="secretvalue"')
        (span,) = mapper.map_entry(mask, offsets)
        assert span == OverlaySpan(line=1, start_col=5, end_col=16, text="***********")

    def test_single_quoted_excludes_quotes(self, mapper, parser):
        mask, offsets = mask_for(parser, b"SECRET='mysecret'")
        (span,) = mapper.map_entry(mask, offsets)
        assert (span.start_col, span.end_col) == (8, 16)

    def test_unquoted_not_trimmed(self, mapper, parser):
        mask, offsets = mask_for(parser, b"KEY=unquoted")
        (span,) = mapper.map_entry(mask, offsets)
        assert (span.start_col, span.end_col) == (4, 12)

    def test_columns_relative_to_line(self, mapper, parser):
        mask, offsets = mask_for(parser, b"A=1\nSECOND=value", index=1)
        (span,) = mapper.map_entry(mask, offsets)
        assert span.line == 2
        assert (span.start_col, span.end_col) == (7, 12)

    def test_empty_value_zero_width(self, mapper, parser):
        mask, offsets = mask_for(parser, b"EMPTY=")
        (span,) = mapper.map_entry(mask, offsets)
        assert span.width == 0
        assert span.start_col == 6

    def test_empty_quoted_value(self, mapper, parser):
        mask, offsets = mask_for(parser, b'EMPTY=""')
        (span,) = mapper.map_entry(mask, offsets)
        assert (span.start_col, span.end_col) == (7, 7)

    def test_clamped_to_line_length(self, mapper, parser):
        mask, offsets = mask_for(parser, b"KEY=unquoted")
        (span,) = mapper.map_entry(mask, offsets, lines=["KEY=unq"])
        assert span.end_col == 7

    def test_start_clamped_to_line_length(self, mapper, parser):
        mask, offsets = mask_for(parser, b'KEY="secretvalue"')
        (span,) = mapper.map_entry(mask, offsets, lines=["KEY"])
        assert (span.start_col, span.end_col) == (3, 3)

    def test_display_text_is_mask(self, mapper, parser):
        mask, offsets = mask_for(parser, b"KEY=abc", mask="########")
        (span,) = mapper.map_entry(mask, offsets)
        assert span.text == "########"

    def test_default_highlight_group(self, mapper, parser):
        mask, offsets = mask_for(parser, b"KEY=abc")
        (span,) = mapper.map_entry(mask, offsets)
        assert span.highlight == "Comment"

    def test_custom_highlight_group(self, parser):
        mapper = OverlaySpanMapper(highlight_group="Secret")
        mask, offsets = mask_for(parser, TestMultiLine.CONTENT)
        assert {span.highlight for span in mapper.map_entry(mask, offsets)} == {"Secret"}


class TestMultiLine:
    """Test values spanning several lines."""

    CONTENT = b'CERT="line1\nline2\nline3"\nNEXT=x'

    def test_spans_per_line(self, mapper, parser):
        mask, offsets = mask_for(parser, self.CONTENT)
        spans = mapper.map_entry(mask, offsets)
        assert spans == [
            OverlaySpan(line=1, start_col=6, end_col=11, text="*****"),
            OverlaySpan(line=2, start_col=0, end_col=5, text="*****"),
            OverlaySpan(line=3, start_col=0, end_col=5, text="*****"),
        ]

    def test_spans_with_known_lines(self, mapper, parser):
        mask, offsets = mask_for(parser, self.CONTENT)
        lines = self.CONTENT.decode().split("\n")
        assert mapper.map_entry(mask, offsets, lines=lines) == mapper.map_entry(mask, offsets)

    def test_mask_sliced_across_lines(self, mapper, parser):
        mask, offsets = mask_for(parser, self.CONTENT, mask="lin***********ne3")
        texts = [span.text for span in mapper.map_entry(mask, offsets)]
        assert texts == ["lin**", "*****", "**ne3"]

    def test_short_mask_padded(self, parser):
        mapper = OverlaySpanMapper(mask_char="#")
        mask, offsets = mask_for(parser, self.CONTENT, mask="****")
        texts = [span.text for span in mapper.map_entry(mask, offsets)]
        assert texts == ["****#", "#####", "#####"]

    def test_lines_past_end_skipped(self, mapper, parser):
        mask, offsets = mask_for(parser, self.CONTENT)
        spans = mapper.map_entry(mask, offsets, lines=["CERT=\"line1", "line2"])
        assert [span.line for span in spans] == [1, 2]

    def test_value_beyond_document_yields_nothing(self, mapper):
        mask = MaskedLine("K", "full", 5, 5, "***", 40, 43, "abc", QuoteKind.NONE)
        assert mapper.map_entry(mask, LineOffsetTable([0, 10])) == []


class TestRevealedLines:
    """Test that revealed lines are never covered."""

    def test_revealed_single_line(self, mapper, parser):
        mask, offsets = mask_for(parser, b"KEY=value")
        assert mapper.map_entry(mask, offsets, revealed_lines={1}) == []

    def test_revealed_line_inside_multiline_value(self, mapper, parser):
        mask, offsets = mask_for(parser, TestMultiLine.CONTENT)
        assert mapper.map_entry(mask, offsets, revealed_lines={2}) == []

    def test_map_all_skips_revealed(self, mapper, parser):
        document = parser.parse(b"A=one\nB=two\nC=three")
        masks = [
            MaskedLine(e.key, "full", e.line_number, e.value_end_line, "*" * len(e.value),
                       e.value_start, e.value_end, e.value, e.quote)
            for e in document.entries
        ]
        spans = mapper.map_all(masks, document.line_offsets, revealed_lines=[2])
        assert [span.line for span in spans] == [1, 3]


class TestRenderers:
    """Test the shipped renderers."""

    def test_in_memory_renderer_is_a_renderer(self):
        assert isinstance(InMemoryRenderer(), OverlayRenderer)

    def test_in_memory_renderer_records(self):
        renderer = InMemoryRenderer()
        span = OverlaySpan(1, 0, 1, "*")
        renderer.set_overlays("buf", [span])
        renderer.set_overlays("buf", [span])
        assert renderer.overlays("buf") == (span,)
        assert renderer.install_counts["buf"] == 2
        renderer.clear("buf")
        assert renderer.overlays("buf") == ()

    def test_render_text(self):
        lines = ['KEY="secret"', "OTHER=abc"]
        spans = [OverlaySpan(1, 5, 11, "******"), OverlaySpan(2, 6, 9, "***")]
        assert render_text(lines, spans) == ['KEY="******"', "OTHER=***"]

    def test_render_text_multiple_spans_per_line(self):
        spans = [OverlaySpan(1, 0, 2, "xx"), OverlaySpan(1, 4, 6, "yy")]
        assert render_text(["abcdefg"], spans) == ["xxcdyyg"]

    def test_render_text_ignores_out_of_range(self):
        assert render_text(["a"], [OverlaySpan(3, 0, 1, "*")]) == ["a"]

    def test_span_validation(self):
        with pytest.raises(ValueError):
            OverlaySpan(1, 5, 4, "")
        with pytest.raises(ValueError):
            OverlaySpan(1, -1, 4, "")
