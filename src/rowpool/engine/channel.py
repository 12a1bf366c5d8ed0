"""Bounded, closable channels connecting pipeline stages.

A BoundedChannel is a fixed-capacity FIFO with Go-style close semantics
layered over queue.Queue:

- put() blocks while the channel is full (backpressure)
- close() marks the end of the stream with a sentinel, exactly once
- iterating yields items until the sentinel, then stops

Several consumers may iterate the same channel (the worker pool does).
A consumer that meets the sentinel puts it back so its siblings stop too.
After close() nothing else is enqueued, so that re-put never blocks.

Thread Safety:
    Only one thread may call close() for a given channel, after its last
    put(). The pipeline enforces this: the reader closes the input channel,
    the pool coordinator closes the result channel after joining every
    worker.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterator
from typing import Generic, TypeVar

from rowpool.contracts.errors import ChannelClosedError

T = TypeVar("T")


class _Closed:
    """Close sentinel type (identity-compared)."""

    def __repr__(self) -> str:
        return "<channel closed>"


_CLOSED = _Closed()


class BoundedChannel(Generic[T]):
    """Fixed-capacity handoff between pipeline stages.

    Example:
        channel: BoundedChannel[int] = BoundedChannel(capacity=100, name="inputs")
        channel.put(1)
        channel.close()
        assert list(channel) == [1]
    """

    def __init__(self, capacity: int, name: str = "channel") -> None:
        if capacity < 1:
            raise ValueError(f"Channel capacity must be >= 1, got {capacity}")
        self._name = name
        self._queue: queue.Queue[T | _Closed] = queue.Queue(maxsize=capacity)
        self._closed = threading.Event()
        self._close_lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def capacity(self) -> int:
        return self._queue.maxsize

    @property
    def closed(self) -> bool:
        """True once close() has been called."""
        return self._closed.is_set()

    def qsize(self) -> int:
        """Approximate number of buffered entries (may include the sentinel)."""
        return self._queue.qsize()

    def put(self, item: T) -> None:
        """Enqueue an item, blocking while the channel is full.

        Raises:
            ChannelClosedError: If the channel was already closed.
        """
        if self._closed.is_set():
            raise ChannelClosedError(f"put() on closed channel '{self._name}'")
        self._queue.put(item)

    def close(self) -> None:
        """Signal that no more items will be put. Idempotent."""
        with self._close_lock:
            if self._closed.is_set():
                return
            self._closed.set()
        self._queue.put(_CLOSED)

    def __iter__(self) -> Iterator[T]:
        while True:
            item = self._queue.get()
            if isinstance(item, _Closed):
                # Let sibling consumers see the close as well
                self._queue.put(item)
                return
            yield item

    def drain(self) -> int:
        """Consume and discard items until the channel is closed.

        Used on the abort path so upstream producers never block forever.

        Returns:
            Number of discarded items.
        """
        discarded = 0
        for _ in self:
            discarded += 1
        return discarded
