"""Bounded LRU cache of parse results keyed by content fingerprint."""

import logging
from collections.abc import Hashable, Iterator
from typing import Any, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

HEAD = 0
TAIL = 1

SMALL_CONTENT_LIMIT = 512
PREFIX_BYTES = 64
SAMPLE_STRIDE = 16
MAX_SAMPLES = 512


def fingerprint(content: bytes) -> str:
    """
    Compute a cheap, non-cryptographic fingerprint of ``content``.

    Short content is identified by its length and leading bytes; longer
    content by a rolling hash over a strided sample of its bytes.

    Args:
        content: Raw document bytes

    Returns:
        Fingerprint string of the form ``"<length>:<digest>"``
    """
    length = len(content)
    if length < SMALL_CONTENT_LIMIT:
        return f"{length}:{content[:PREFIX_BYTES].hex()}"

    h = length
    samples = 0
    for i in range(0, length, SAMPLE_STRIDE):
        h = (h * 31 + content[i]) & 0xFFFFFFFF
        samples += 1
        if samples >= MAX_SAMPLES:
            break
    return f"{length}:{h:x}"


class ContentCache(Generic[K, V]):
    """
    Fixed-capacity cache with strict least-recently-used eviction.

    Entries live in an arena of slots addressed by integer index. Slot 0 is
    the head sentinel (most recent side) and slot 1 the tail sentinel
    (least recent side). Freed slots are recycled through a free list.
    """

    def __init__(self, capacity: int = 200) -> None:
        if not isinstance(capacity, int) or capacity < 1:
            raise ValueError(f"Cache capacity must be a positive integer, got {capacity!r}")
        self._capacity = capacity
        self._keys: list[Any] = [None, None]
        self._values: list[Any] = [None, None]
        self._prev: list[int] = [HEAD, HEAD]
        self._next: list[int] = [TAIL, TAIL]
        self._index: dict[K, int] = {}
        self._free: list[int] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    def size(self) -> int:
        return len(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def _unlink(self, slot: int) -> None:
        prev_slot, next_slot = self._prev[slot], self._next[slot]
        self._next[prev_slot] = next_slot
        self._prev[next_slot] = prev_slot

    def _push_front(self, slot: int) -> None:
        first = self._next[HEAD]
        self._prev[slot] = HEAD
        self._next[slot] = first
        self._prev[first] = slot
        self._next[HEAD] = slot

    def _allocate(self, key: K, value: V) -> int:
        if self._free:
            slot = self._free.pop()
            self._keys[slot] = key
            self._values[slot] = value
        else:
            slot = len(self._keys)
            self._keys.append(key)
            self._values.append(value)
            self._prev.append(HEAD)
            self._next.append(TAIL)
        return slot

    def _release(self, slot: int) -> None:
        self._keys[slot] = None
        self._values[slot] = None
        self._free.append(slot)

    def get(self, key: K) -> Optional[V]:
        """Return the cached value for ``key`` and mark it most recent."""
        slot = self._index.get(key)
        if slot is None:
            return None
        self._unlink(slot)
        self._push_front(slot)
        return self._values[slot]

    def put(self, key: K, value: V) -> None:
        """Insert or update ``key``, evicting the least recent entry if full."""
        slot = self._index.get(key)
        if slot is not None:
            self._values[slot] = value
            self._unlink(slot)
            self._push_front(slot)
            return

        if len(self._index) >= self._capacity:
            self._evict()

        slot = self._allocate(key, value)
        self._index[key] = slot
        self._push_front(slot)

    def _evict(self) -> None:
        victim = self._prev[TAIL]
        if victim == HEAD:
            return
        key = self._keys[victim]
        self._unlink(victim)
        del self._index[key]
        self._release(victim)
        logger.debug(f"Evicted cache entry {key!r}")

    def remove(self, key: K) -> bool:
        """Remove ``key``; return whether it was present."""
        slot = self._index.pop(key, None)
        if slot is None:
            return False
        self._unlink(slot)
        self._release(slot)
        return True

    def clear(self) -> None:
        """Drop every entry and reset the arena."""
        self._keys = [None, None]
        self._values = [None, None]
        self._prev = [HEAD, HEAD]
        self._next = [TAIL, TAIL]
        self._index.clear()
        self._free.clear()

    def keys(self) -> list[K]:
        """Keys ordered from most to least recently used."""
        return [key for key, _ in self.items()]

    def items(self) -> Iterator[tuple[K, V]]:
        """Iterate entries from most to least recently used without touching recency."""
        slot = self._next[HEAD]
        while slot != TAIL:
            yield self._keys[slot], self._values[slot]
            slot = self._next[slot]

    def __repr__(self) -> str:
        return f"ContentCache(size={len(self)}, capacity={self._capacity})"
