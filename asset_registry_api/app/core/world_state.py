"""
World state contract and an in‑process implementation.

The registry never talks to a concrete database.  It receives a
``WorldState`` for the duration of one invocation and uses five
primitives: point read, unconditional write, conditional write
(``put_if_absent``), delete and an ordered range scan.  Range scans
hand back a ``StateIterator`` that must be closed once consumed;
it is a context manager so callers can rely on ``with``.

``InMemoryWorldState`` keeps keys in a plain dict and sorts them on
every scan.  It is used by the test-suite and by the ``memory``
state backend.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

KeyValue = Tuple[str, bytes]


class StateIterator:
    """Closable iterator over ``(key, value)`` pairs from a range scan."""

    def __init__(self, rows: Iterable[KeyValue], on_close: Optional[Callable[[], None]] = None):
        self._rows = iter(rows)
        self._on_close = on_close
        self.closed = False

    def __iter__(self) -> Iterator[KeyValue]:
        return self

    def __next__(self) -> KeyValue:
        if self.closed:
            raise StopIteration
        return next(self._rows)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._on_close is not None:
            self._on_close()

    def __enter__(self) -> "StateIterator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class WorldState(ABC):
    """Abstract key‑value store seen by one registry invocation."""

    @abstractmethod
    def get_state(self, key: str) -> Optional[bytes]:
        """Return the raw value stored at ``key`` or ``None``."""

    @abstractmethod
    def put_state(self, key: str, value: bytes) -> None:
        """Write ``value`` at ``key``, replacing any previous value."""

    @abstractmethod
    def put_if_absent(self, key: str, value: bytes) -> bool:
        """Write ``value`` only if ``key`` is free.

        Returns ``False`` without writing when another value already
        occupies the key.  Implementations must make the check and the
        write a single atomic step.
        """

    @abstractmethod
    def del_state(self, key: str) -> None:
        """Remove ``key``.  Removing a missing key is a no‑op."""

    @abstractmethod
    def get_state_by_range(self, start_key: str = "", end_key: str = "") -> StateIterator:
        """Scan keys in ``[start_key, end_key)`` in ascending order.

        An empty ``start_key`` or ``end_key`` leaves that side of the
        range unbounded.
        """


class InMemoryWorldState(WorldState):
    """Dict‑backed world state with sorted range scans."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})
        self._lock = threading.Lock()

    def get_state(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def put_state(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = value

    def put_if_absent(self, key: str, value: bytes) -> bool:
        with self._lock:
            if key in self._data:
                return False
            self._data[key] = value
            return True

    def del_state(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def get_state_by_range(self, start_key: str = "", end_key: str = "") -> StateIterator:
        with self._lock:
            # Snapshot so writes during a scan do not leak into it.
            rows: List[KeyValue] = [
                (key, self._data[key])
                for key in sorted(self._data)
                if (not start_key or key >= start_key) and (not end_key or key < end_key)
            ]
        return StateIterator(rows)

    def __len__(self) -> int:
        return len(self._data)

    def snapshot(self) -> Dict[str, bytes]:
        """Return a copy of the current contents."""
        with self._lock:
            return dict(self._data)
