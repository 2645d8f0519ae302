"""FIFO hand-off of allocated patients to treatment workers.

The queue shares the scheduler lock through a ``threading.Condition``:
``push`` signals one idle worker, and ``wait`` lets a worker sleep until
work arrives instead of polling. All methods expect the caller to hold the
lock passed in at construction.

Example::

    lock = threading.RLock()
    ready = ReadyQueue(lock)

    # producer
    with lock:
        ready.push(patient_id)

    # worker
    with lock:
        patient_id = ready.pop_or_none()
        if patient_id is None:
            ready.wait(timeout=0.5)
"""

from __future__ import annotations

import logging
import threading
from collections import deque

logger = logging.getLogger(__name__)


class ReadyQueue:
    """Patient ids holding resources and waiting for a worker.

    Args:
        lock: The scheduler lock guarding all shared state.
    """

    def __init__(self, lock: threading.RLock | threading.Lock) -> None:
        self._ids: deque[int] = deque()
        self._ready = threading.Condition(lock)

    def push(self, patient_id: int) -> None:
        self._ids.append(patient_id)
        self._ready.notify()
        logger.debug("[ready] Patient %d ready (depth=%d)", patient_id, len(self._ids))

    def pop_or_none(self) -> int | None:
        """Take the oldest id. Each id is handed to exactly one caller."""
        if not self._ids:
            return None
        return self._ids.popleft()

    def remove(self, patient_id: int) -> bool:
        try:
            self._ids.remove(patient_id)
        except ValueError:
            return False
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Release the lock until a push or ``notify_all``, or until timeout."""
        return self._ready.wait(timeout)

    def notify_all(self) -> None:
        self._ready.notify_all()

    def ids(self) -> list[int]:
        return list(self._ids)

    def __len__(self) -> int:
        return len(self._ids)
