"""Bounded pool of check slots shared by the request boundary."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from constants import DEFAULT_ACQUIRE_TIMEOUT, DEFAULT_MAX_CONCURRENT
from exceptions import CapacityExceededError

__all__ = ["ResourcePool"]

logger = logging.getLogger(__name__)


class ResourcePool:
    """Caps how many expensive operations run at once.

    Callers either pair ``acquire``/``release`` explicitly or use the
    ``slot()`` context manager. ``acquire`` gives up after the timeout and
    raises ``CapacityExceededError`` instead of blocking forever.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_MAX_CONCURRENT,
        acquire_timeout: float = DEFAULT_ACQUIRE_TIMEOUT,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.acquire_timeout = acquire_timeout
        self._semaphore = threading.BoundedSemaphore(capacity)
        self._lock = threading.Lock()
        self._in_use = 0

    @property
    def in_use(self) -> int:
        with self._lock:
            return self._in_use

    @property
    def available(self) -> int:
        return self.capacity - self.in_use

    def acquire(self, timeout: Optional[float] = None) -> None:
        wait = self.acquire_timeout if timeout is None else timeout
        if not self._semaphore.acquire(timeout=wait):
            logger.warning("No free slot after %.1fs (capacity=%d)", wait, self.capacity)
            raise CapacityExceededError(
                "too many concurrent checks",
                details={"capacity": self.capacity, "timeout": wait},
            )
        with self._lock:
            self._in_use += 1

    def release(self) -> None:
        with self._lock:
            if self._in_use == 0:
                raise RuntimeError("release() called without a matching acquire()")
            self._in_use -= 1
        self._semaphore.release()

    @contextmanager
    def slot(self, timeout: Optional[float] = None) -> Iterator[None]:
        self.acquire(timeout)
        try:
            yield
        finally:
            self.release()
