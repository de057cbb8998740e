"""Per-key re-entrant locks.

Every mutation that touches a discussion holds that discussion's lock, so a
restore cannot interleave with a branch merge or a discussion merge on the
same id. An entry lives only while some thread holds or waits on it.
"""

import threading
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager


class KeyedLock:
    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}
        self._users: dict[str, int] = {}

    def _checkout(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _checkin(self, key: str) -> None:
        with self._guard:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        """Acquire the locks for ``keys`` in sorted order and release on exit."""
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                lock = self._checkout(key)
                stack.callback(self._checkin, key)
                stack.enter_context(lock)
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
