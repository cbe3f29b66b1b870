"""Per-job mutual exclusion for status transitions and deletions."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class _JobLockEntry:
    """Lock for one job plus the number of threads holding or waiting on it."""

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class JobLockRegistry:
    """Hands out one lock per job id so writes to the same job are serialized.

    An entry lives only while some thread holds or waits for it, so ids of
    finished or deleted jobs do not accumulate.
    """

    def __init__(self):
        self._entries: dict[int, _JobLockEntry] = {}
        self._registry_lock = threading.Lock()

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._entries)

    @contextmanager
    def job_lock(self, job_id: int) -> Iterator[None]:
        """Hold the lock for `job_id` for the duration of the block."""

        with self._registry_lock:
            entry = self._entries.get(job_id)
            if entry is None:
                entry = self._entries[job_id] = _JobLockEntry()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._registry_lock:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[job_id]
