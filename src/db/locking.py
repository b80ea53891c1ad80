"""Store-wide reader/writer lock that can be closed to drain in-flight operations."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from src.core.exceptions import StoreClosedError


class ReadWriteLock:
    """
    Many readers or one writer at a time.
    ----

    Waiting writers block new readers, so a steady stream of reads cannot starve a save.
    Not reentrant: a holder must not ask for the lock again.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            self._cond.wait_for(
                lambda: self._closed
                or not (self._writer or self._writers_waiting)
            )
            self._raise_if_closed()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                self._cond.wait_for(
                    lambda: self._closed or not (self._writer or self._readers)
                )
            finally:
                self._writers_waiting -= 1
            if self._closed:
                self._cond.notify_all()
                raise StoreClosedError("store is shut down")
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()

    def close(self, timeout: float | None = None) -> bool:
        """Refuse new operations and wait for the running ones. Returns False if they did not finish within `timeout`."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()
            return self._cond.wait_for(
                lambda: not (self._writer or self._readers), timeout=timeout
            )

    def _raise_if_closed(self) -> None:
        if self._closed:
            raise StoreClosedError("store is shut down")
