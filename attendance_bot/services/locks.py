import threading
from contextlib import contextmanager
from typing import Hashable, Iterator


class KeyedLock:
    """
    One lock per key, e.g. (user_id, date). Events for the same key run one
    at a time; different keys never wait on each other. Locks are dropped
    once nobody holds or waits on them.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[key] -= 1
                if self._users[key] == 0:
                    del self._users[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Shared by every request in the process
user_day_locks = KeyedLock()
