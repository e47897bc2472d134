"""Install overlay spans on a renderer, immediately or on the next loop tick."""

import asyncio
import logging
from collections.abc import Collection, Hashable, Iterable, Sequence
from typing import Optional

from ..core.types import LineOffsetTable, MaskedLine, OverlaySpan
from .overlay import Line, OverlaySpanMapper
from .renderer import OverlayRenderer
from .scheduling import LoopBound

logger = logging.getLogger(__name__)


class BufferMasker(LoopBound):
    """
    Compute overlay spans for a buffer and install them on the renderer.

    Installation is clear-then-set. Deferred installations carry the
    buffer's generation at scheduling time and are dropped if a newer
    installation was requested in the meantime.
    """

    def __init__(
        self,
        renderer: OverlayRenderer,
        mapper: Optional[OverlaySpanMapper] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        super().__init__(loop)
        self.renderer = renderer
        self.mapper = mapper or OverlaySpanMapper()
        self._generations: dict[Hashable, int] = {}

    def apply_masks(
        self,
        buffer_id: Hashable,
        masks: Iterable[MaskedLine],
        line_offsets: LineOffsetTable,
        lines: Optional[Sequence[Line]] = None,
        revealed_lines: Collection[int] = (),
        sync: bool = False,
    ) -> list[OverlaySpan]:
        """
        Map ``masks`` to spans and install them.

        Args:
            buffer_id: Renderer buffer identifier
            masks: Descriptors from the masking engine
            line_offsets: Line offset table of the parsed document
            lines: Current buffer lines, for clamping columns
            revealed_lines: Lines that must stay uncovered
            sync: Install before returning instead of on the next loop tick

        Returns:
            The computed spans
        """
        spans = self.mapper.map_all(masks, line_offsets, revealed_lines, lines)
        generation = self._generations.get(buffer_id, 0) + 1
        self._generations[buffer_id] = generation

        if sync:
            self._install(buffer_id, spans, generation)
        else:
            self.loop.call_soon(self._install, buffer_id, spans, generation)
        return spans

    def clear(self, buffer_id: Hashable) -> None:
        """Remove all overlays from ``buffer_id`` and invalidate pending installs."""
        self._generations[buffer_id] = self._generations.get(buffer_id, 0) + 1
        self.renderer.clear(buffer_id)

    def generation(self, buffer_id: Hashable) -> int:
        return self._generations.get(buffer_id, 0)

    def _install(
        self, buffer_id: Hashable, spans: Sequence[OverlaySpan], generation: int
    ) -> None:
        if self._generations.get(buffer_id) != generation:
            logger.debug(f"Dropping stale overlay install for buffer {buffer_id!r}")
            return
        self.renderer.clear(buffer_id)
        self.renderer.set_overlays(buffer_id, spans)
