"""Renderer contract and the renderers shipped with envshelter."""

from collections import defaultdict
from collections.abc import Hashable, Iterable, Sequence
from typing import Protocol, runtime_checkable

from ..core.types import OverlaySpan


@runtime_checkable
class OverlayRenderer(Protocol):
    """Host display surface that shows overlay spans over buffer text.

    Both operations must be idempotent for identical input.
    """

    def set_overlays(self, buffer_id: Hashable, spans: Sequence[OverlaySpan]) -> None:
        ...

    def clear(self, buffer_id: Hashable) -> None:
        ...


class InMemoryRenderer:
    """Renderer that records the overlays currently installed per buffer."""

    def __init__(self) -> None:
        self._overlays: dict[Hashable, tuple[OverlaySpan, ...]] = {}
        self.install_counts: dict[Hashable, int] = defaultdict(int)

    def set_overlays(self, buffer_id: Hashable, spans: Sequence[OverlaySpan]) -> None:
        self._overlays[buffer_id] = tuple(spans)
        self.install_counts[buffer_id] += 1

    def clear(self, buffer_id: Hashable) -> None:
        self._overlays.pop(buffer_id, None)

    def overlays(self, buffer_id: Hashable) -> tuple[OverlaySpan, ...]:
        return self._overlays.get(buffer_id, ())

    def buffers(self) -> list[Hashable]:
        return list(self._overlays)


def render_text(lines: Sequence[str], spans: Iterable[OverlaySpan]) -> list[str]:
    """
    Paint overlay spans onto ``lines`` and return the displayed lines.

    Span columns are byte columns; each covered region is replaced by the
    span text.
    """
    by_line: dict[int, list[OverlaySpan]] = defaultdict(list)
    for span in spans:
        by_line[span.line].append(span)

    rendered = list(lines)
    for line, line_spans in by_line.items():
        if line < 1 or line > len(rendered):
            continue
        raw = rendered[line - 1].encode("utf-8")
        # right to left so earlier columns stay valid
        for span in sorted(line_spans, key=lambda s: s.start_col, reverse=True):
            raw = raw[: span.start_col] + span.text.encode("utf-8") + raw[span.end_col :]
        rendered[line - 1] = raw.decode("utf-8", errors="replace")
    return rendered
