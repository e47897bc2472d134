"""Masking pipeline: engine, overlay mapping, rendering and scheduling."""

from .applicator import BufferMasker
from .engine import MaskEngine, source_basename
from .overlay import OverlaySpanMapper
from .renderer import InMemoryRenderer, OverlayRenderer, render_text
from .scheduling import Debouncer, PeekController, RevealState

__all__ = [
    "BufferMasker",
    "Debouncer",
    "InMemoryRenderer",
    "MaskEngine",
    "OverlayRenderer",
    "OverlaySpanMapper",
    "PeekController",
    "RevealState",
    "render_text",
    "source_basename",
]
