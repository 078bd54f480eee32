"""Reference-shared sequences.

A ``Sequence`` is a window ``[start, stop)`` onto a backing list.  Slicing
produces another window onto the same list, so a write through one view is
seen through every other view of the same storage.  The part of the backing
list past ``stop`` is spare capacity that ``append`` fills in place.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class Sequence:
    """Ordered, indexable, reference-shared container.

    Parameters
    ----------
    data : list
        Backing storage; shared, never copied.
    elem : TypeDesc | None
        Element type.  ``None`` or the ``interface`` type accepts anything.
    start, stop : int
        Window onto *data*.  *stop* defaults to ``len(data)``.
    """

    __slots__ = ("_data", "_start", "_stop", "elem")

    def __init__(
        self,
        data: list | None = None,
        elem: object | None = None,
        *,
        start: int = 0,
        stop: int | None = None,
    ) -> None:
        self._data = data if data is not None else []
        self._start = start
        self._stop = len(self._data) if stop is None else stop
        self.elem = elem

    @property
    def cap(self) -> int:
        return len(self._data) - self._start

    def __len__(self) -> int:
        return self._stop - self._start

    def __iter__(self) -> Iterator[object]:
        for i in range(self._start, self._stop):
            yield self._data[i]

    def __getitem__(self, index: int) -> object:
        return self._data[self._offset(index)]

    def __setitem__(self, index: int, value: object) -> None:
        self._data[self._offset(index)] = value

    def _offset(self, index: int) -> int:
        if index < 0 or index >= len(self):
            raise IndexError(f"index {index} out of range (0..{len(self) - 1})")
        return self._start + index

    def view(self, begin: int, end: int) -> Sequence:
        """Window ``[begin, end)`` of this sequence sharing the same storage."""
        return Sequence(
            self._data, self.elem, start=self._start + begin, stop=self._start + end,
        )

    def append(self, values: Iterable[object]) -> Sequence:
        """Return a sequence with *values* added at the end.

        Spare capacity in the backing list is written in place and shared;
        otherwise the elements move to fresh storage.
        """
        values = list(values)
        stop = self._stop + len(values)
        if stop <= len(self._data):
            self._data[self._stop:stop] = values
            return Sequence(self._data, self.elem, start=self._start, stop=stop)
        return Sequence(self.to_list() + values, self.elem)

    def to_list(self) -> list:
        return self._data[self._start:self._stop]

    def __repr__(self) -> str:
        return f"Sequence({self.to_list()!r})"


def as_sequence(value: object) -> Sequence:
    """View a host ``list`` as a sequence without copying it."""
    if isinstance(value, Sequence):
        return value
    if isinstance(value, list):
        return Sequence(value)
    raise TypeError(f"not a sequence: {type(value).__name__}")
