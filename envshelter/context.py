"""Explicit owner of every shared envshelter resource."""

import asyncio
import logging
from collections.abc import Hashable, Mapping
from typing import Any, Optional, Union

from .core.cache import ContentCache
from .core.config import ShelterSettings
from .core.patterns import PatternResolver
from .core.types import MaskContext, MaskResult, OverlaySpan, Parser
from .masking.applicator import BufferMasker
from .masking.engine import MaskEngine
from .masking.overlay import OverlaySpanMapper
from .masking.renderer import InMemoryRenderer, OverlayRenderer
from .masking.scheduling import Debouncer, PeekController, RevealState
from .strategies.base import MaskingStrategy
from .strategies.registry import FALLBACK_MODE, StrategyRegistry

logger = logging.getLogger(__name__)

Content = Union[bytes, str]


def _as_bytes(content: Content) -> bytes:
    return content.encode("utf-8") if isinstance(content, str) else content


def _split_lines(content: bytes) -> list[bytes]:
    return content.split(b"\n")


def _build_modes(settings: ShelterSettings) -> tuple[PatternResolver, StrategyRegistry]:
    resolver = PatternResolver()
    resolver.compile(settings.patterns, settings.sources, settings.default_mode)
    registry = StrategyRegistry()
    registry.setup(settings)
    return resolver, registry


class ShelterContext:
    """
    Wires the resolver, registry, cache, engine and display pipeline together.

    Build one per host (editor session, CLI invocation, test) and pass it
    around; separate contexts share nothing.

    Args:
        settings: Masking configuration, defaults when omitted
        parser: Parser collaborator, the reference EdfParser when omitted
        renderer: Overlay renderer, an InMemoryRenderer when omitted
        loop: Event loop for deferred work; the running loop is used when
            omitted and a deferred operation is requested
    """

    def __init__(
        self,
        settings: Optional[ShelterSettings] = None,
        parser: Optional[Parser] = None,
        renderer: Optional[OverlayRenderer] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.settings = settings or ShelterSettings()
        self.resolver, self.registry = _build_modes(self.settings)
        self.cache: ContentCache = ContentCache(self.settings.cache_size)
        self.engine = MaskEngine(
            self.resolver,
            self.registry,
            parser=parser,
            cache=self.cache,
            skip_comments=self.settings.skip_comments,
            settings=self.settings,
        )
        self.mapper = OverlaySpanMapper(
            self.settings.mask_char, self.settings.highlight_group
        )
        self.renderer: OverlayRenderer = renderer or InMemoryRenderer()
        self.masker = BufferMasker(self.renderer, self.mapper, loop)
        self.reveal_state = RevealState()
        self.debouncer = Debouncer(loop)
        self.peek_controller = PeekController(
            self.reveal_state, self.settings.peek_duration, loop
        )
        self.enabled = True
        self._buffers: dict[Hashable, tuple[bytes, Optional[str]]] = {}

    def reconfigure(self, settings: ShelterSettings) -> None:
        """
        Switch to new settings: recompile patterns, rebuild the registry and
        drop cached parses.

        Patterns and modes are built before anything is replaced, so a
        failure leaves the context exactly as it was.

        Raises:
            OptionValidationError: If a mode table in ``settings`` is invalid
        """
        resolver, registry = _build_modes(settings)

        self.settings = settings
        self.resolver = self.engine.resolver = resolver
        self.registry = self.engine.registry = registry
        if settings.cache_size != self.cache.capacity:
            self.cache = ContentCache(settings.cache_size)
            self.engine.cache = self.cache
        else:
            self.cache.clear()
        self.engine.skip_comments = settings.skip_comments
        self.engine.settings = settings
        self.mapper.mask_char = settings.mask_char
        self.mapper.highlight_group = settings.highlight_group
        self.peek_controller.duration = settings.peek_duration
        logger.info(f"Reconfigured with modes: {', '.join(self.registry.list())}")

    def register_mode(
        self, name: str, definition: Union[Mapping[str, Any], type[MaskingStrategy]]
    ) -> bool:
        """Register a custom mode on this context's registry."""
        return self.registry.define(name, definition)

    def mask_value(
        self,
        value: str,
        mode: Optional[str] = None,
        *,
        key: str = "",
        source: Optional[str] = None,
        **options: Any,
    ) -> str:
        """
        Mask a single value.

        Args:
            value: Value to mask
            mode: Mode name; resolved from ``key``/``source`` when omitted
            key: Key the value belongs to
            source: Path of the file the value came from
            **options: One-off option overrides for the chosen mode

        Returns:
            Masked text
        """
        name = mode or self.engine.determine_mode(key, source)
        context = MaskContext(key=key, value=value, source=source, settings=self.settings)
        if not options:
            return self.registry.apply(name, value, context)

        if not self.registry.exists(name):
            logger.warning(f"Unknown mode '{name}', falling back to '{FALLBACK_MODE}'")
            name = FALLBACK_MODE
        return self.registry.get(name).clone(options).mask(value, context)

    def generate_masks(self, content: Content, source: Optional[str] = None) -> MaskResult:
        return self.engine.generate_masks(content, source)

    def shelter_buffer(
        self,
        buffer_id: Hashable,
        content: Content,
        source: Optional[str] = None,
        sync: bool = False,
    ) -> list[OverlaySpan]:
        """
        Mask a buffer's content and install the overlays on the renderer.

        Returns:
            The computed spans (empty while masking is disabled)
        """
        raw = _as_bytes(content)
        self._buffers[buffer_id] = (raw, source)
        if not self.enabled:
            return []

        result = self.engine.generate_masks(raw, source)
        return self.masker.apply_masks(
            buffer_id,
            result.masks,
            result.line_offsets,
            lines=_split_lines(raw),
            revealed_lines=self.reveal_state.revealed_lines(buffer_id),
            sync=sync,
        )

    def unshelter_buffer(self, buffer_id: Hashable) -> None:
        """Remove overlays and forget all state for ``buffer_id``."""
        self.debouncer.cancel(buffer_id)
        self.masker.clear(buffer_id)
        self.reveal_state.reset(buffer_id)
        self._buffers.pop(buffer_id, None)

    def schedule_refresh(
        self, buffer_id: Hashable, content: Content, source: Optional[str] = None
    ) -> asyncio.TimerHandle:
        """Re-mask ``buffer_id`` once edits have paused for ``debounce_delay``."""
        return self.debouncer.call(
            buffer_id,
            self.settings.debounce_delay,
            self.shelter_buffer,
            buffer_id,
            content,
            source,
            True,
        )

    def peek(
        self,
        buffer_id: Hashable,
        line: int,
        content: Optional[Content] = None,
        source: Optional[str] = None,
    ) -> asyncio.TimerHandle:
        """Reveal ``line`` for ``peek_duration`` seconds, then mask it again."""
        if content is not None:
            self._buffers[buffer_id] = (_as_bytes(content), source)
        return self.peek_controller.peek(
            buffer_id, line, lambda: self._refresh(buffer_id)
        )

    def toggle_peek(self, buffer_id: Hashable, line: int) -> bool:
        return self.peek_controller.toggle_peek(
            buffer_id, line, lambda: self._refresh(buffer_id)
        )

    def _refresh(self, buffer_id: Hashable) -> None:
        stored = self._buffers.get(buffer_id)
        if stored is None:
            return
        content, source = stored
        self.shelter_buffer(buffer_id, content, source, sync=True)

    def set_enabled(self, enabled: bool) -> None:
        """Turn masking on or off for every known buffer."""
        self.enabled = enabled
        if enabled:
            self.reveal_state.reset()
            self.engine.clear_caches()
            for buffer_id in list(self._buffers):
                self._refresh(buffer_id)
        else:
            for buffer_id in list(self._buffers):
                self.masker.clear(buffer_id)

    def toggle(self) -> bool:
        self.set_enabled(not self.enabled)
        return self.enabled

    def info(self) -> list[dict[str, Any]]:
        """Registered modes with their built-in/custom marker and description."""
        modes = []
        for name in self.registry.list():
            info = self.registry.info(name) or {}
            modes.append(
                {
                    "name": name,
                    "builtin": self.registry.is_builtin(name),
                    "description": info.get("description", ""),
                    "options": info.get("options", {}),
                }
            )
        return modes

    def close(self) -> None:
        """Cancel pending timers and hide revealed lines."""
        self.debouncer.cancel_all()
        self.peek_controller.cleanup()


def mask_value(value: str, mode: str = "full", **options: Any) -> str:
    """
    Mask ``value`` with a fresh instance of ``mode``.

    Stateless: nothing configured elsewhere affects the result. An unknown
    ``mode`` falls back to ``full`` with a warning.

    Raises:
        OptionValidationError: If ``options`` are invalid
    """
    registry = StrategyRegistry()
    if not registry.exists(mode):
        logger.warning(f"Unknown mode '{mode}', falling back to '{FALLBACK_MODE}'")
        mode = FALLBACK_MODE
    strategy = registry.create(mode, options or None)
    return strategy.mask(value, MaskContext(value=value))
