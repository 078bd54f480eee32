"""Blocking channels.

Unbuffered channels are rendezvous points: a send returns only once a
receiver has taken the value.  Buffered channels let up to *capacity*
sends complete ahead of their receivers.  Every blocking call waits
indefinitely; there is no timeout.
"""

from __future__ import annotations

import threading
from collections import deque


class ChannelClosed(Exception):
    """Send on a closed channel."""


class Channel:
    """Synchronous FIFO channel shared between evaluations.

    Parameters
    ----------
    elem : TypeDesc | None
        Element type, used by the evaluator to convert sent values.
    capacity : int
        Buffer size; 0 means unbuffered.
    """

    def __init__(self, elem: object | None = None, capacity: int = 0) -> None:
        if capacity < 0:
            raise ValueError(f"negative buffer size {capacity}")
        self.elem = elem
        self.capacity = capacity
        self._queue: deque[object] = deque()
        self._cond = threading.Condition()
        self._sent = 0
        self._received = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        """Values buffered and not yet received."""
        with self._cond:
            return min(len(self._queue), self.capacity)

    def send(self, value: object) -> None:
        """Queue *value*; block until the buffer has room for it."""
        with self._cond:
            if self._closed:
                raise ChannelClosed("send on closed channel")
            self._queue.append(value)
            self._sent += 1
            ticket = self._sent
            self._cond.notify_all()
            # Accepted once it fits in the buffer, or has been received.
            while self._received < ticket - self.capacity:
                self._cond.wait()

    def recv(self) -> tuple[object, bool]:
        """Take the oldest value.

        Returns ``(value, True)``, or ``(None, False)`` once the channel is
        closed and drained; the caller supplies the element zero value.
        """
        with self._cond:
            while not self._queue:
                if self._closed:
                    return None, False
                self._cond.wait()
            value = self._queue.popleft()
            self._received += 1
            self._cond.notify_all()
            return value, True

    def close(self) -> None:
        with self._cond:
            if self._closed:
                raise ChannelClosed("close of closed channel")
            self._closed = True
            self._cond.notify_all()

    def __repr__(self) -> str:
        state = " closed" if self._closed else ""
        return f"<chan {self.elem} cap={self.capacity}{state}>"
