"""Timers and revealed-line state on a cooperative asyncio event loop.

Everything here runs on a single event loop thread: callbacks are
scheduled with ``call_soon``/``call_later`` and never run concurrently
with each other.
"""

import asyncio
import logging
from collections.abc import Hashable
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_PEEK_DURATION = 3.0


class LoopBound:
    """Mixin resolving the event loop a component schedules on."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            # raises RuntimeError outside a running loop
            self._loop = asyncio.get_running_loop()
        return self._loop


class Debouncer(LoopBound):
    """
    Keyed trailing-edge debouncer.

    Each ``call`` cancels the pending call for the same key before
    scheduling a new one, so at most one call per key is pending.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        super().__init__(loop)
        self._handles: dict[Hashable, asyncio.TimerHandle] = {}

    def call(
        self, key: Hashable, delay: float, fn: Callable[..., Any], *args: Any
    ) -> asyncio.TimerHandle:
        """Schedule ``fn(*args)`` after ``delay`` seconds, replacing any pending call for ``key``."""
        self.cancel(key)

        def fire() -> None:
            self._handles.pop(key, None)
            fn(*args)

        handle = self.loop.call_later(delay, fire)
        self._handles[key] = handle
        return handle

    def cancel(self, key: Hashable) -> bool:
        """Cancel the pending call for ``key``; return whether one existed."""
        handle = self._handles.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> None:
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()

    def active_count(self) -> int:
        return len(self._handles)

    def is_pending(self, key: Hashable) -> bool:
        return key in self._handles


class RevealState:
    """Per-buffer set of revealed (unmasked) line numbers."""

    def __init__(self) -> None:
        self._revealed: dict[Hashable, set[int]] = {}

    def reveal(self, buffer_id: Hashable, line: int) -> None:
        self._revealed.setdefault(buffer_id, set()).add(line)

    def hide(self, buffer_id: Hashable, line: int) -> None:
        lines = self._revealed.get(buffer_id)
        if lines is None:
            return
        lines.discard(line)
        if not lines:
            del self._revealed[buffer_id]

    def is_revealed(self, buffer_id: Hashable, line: int) -> bool:
        return line in self._revealed.get(buffer_id, ())

    def revealed_lines(self, buffer_id: Hashable) -> frozenset[int]:
        return frozenset(self._revealed.get(buffer_id, ()))

    def reset(self, buffer_id: Optional[Hashable] = None) -> None:
        """Hide every line of ``buffer_id``, or of all buffers when omitted."""
        if buffer_id is None:
            self._revealed.clear()
        else:
            self._revealed.pop(buffer_id, None)


class PeekController(LoopBound):
    """
    Temporarily reveal a line, hiding it again after ``duration`` seconds.

    Only one peek timer is active at a time; starting a new peek cancels
    the previous timer.
    """

    def __init__(
        self,
        reveal_state: RevealState,
        duration: float = DEFAULT_PEEK_DURATION,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        super().__init__(loop)
        self.reveal_state = reveal_state
        self.duration = duration
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def is_active(self) -> bool:
        return self._timer is not None

    def peek(
        self, buffer_id: Hashable, line: int, refresh: Callable[[], Any]
    ) -> asyncio.TimerHandle:
        """Reveal ``line``, refresh, and schedule it to be hidden again."""
        self._cancel_timer()
        self.reveal_state.reveal(buffer_id, line)
        refresh()

        def expire() -> None:
            self._timer = None
            self.hide(buffer_id, line, refresh)

        self._timer = self.loop.call_later(self.duration, expire)
        logger.debug(f"Peeking line {line} of buffer {buffer_id!r} for {self.duration}s")
        return self._timer

    def hide(self, buffer_id: Hashable, line: int, refresh: Callable[[], Any]) -> None:
        self.reveal_state.hide(buffer_id, line)
        refresh()

    def toggle_peek(
        self, buffer_id: Hashable, line: int, refresh: Callable[[], Any]
    ) -> bool:
        """Hide ``line`` if revealed, otherwise peek it. Returns the new revealed state."""
        if self.reveal_state.is_revealed(buffer_id, line):
            self.hide(buffer_id, line, refresh)
            return False
        self.peek(buffer_id, line, refresh)
        return True

    def cleanup(self) -> None:
        """Cancel the peek timer and hide every revealed line."""
        self._cancel_timer()
        self.reveal_state.reset()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
