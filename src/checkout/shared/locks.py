"""Per-key mutual exclusion for at-most-once writes.

A Protean unit of work commits after the command handler returns, so the
lock has to wrap the whole ``domain.process`` call, not just the handler
body, for a second caller to observe the first caller's committed row.
"""

import threading
from contextlib import contextmanager


class KeyedLock:
    """A lock per key, created on first use and dropped when nobody holds or waits on it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, list] = {}  # key -> [lock, holders_and_waiters]

    @contextmanager
    def hold(self, key: str):
        with self._guard:
            entry = self._entries.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1

        entry[0].acquire()
        try:
            yield
        finally:
            entry[0].release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)


keyed_locks = KeyedLock()
