"""Readers/writer gate for a single database file.

DuckDB lets one process hold a database file read-write, or many
processes hold it read-only. Inside one process the same file cannot be
open read-only and read-write at the same time either. The gate turns
that constraint into a waiting discipline instead of an engine error:

    - Any number of readers while no writer holds the gate.
    - One writer, and only once every reader has left.
    - Writer preference: while a writer waits, new readers wait too.

Typical use is one short-lived connection per function call:

    with gate.read():
        ...  # open a read-only connection, query, close
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from duckdb_access.domain.errors import GateTimeoutError
from duckdb_access.domain.value_objects import AccessMode


@dataclass(frozen=True)
class GateStats:
    """Snapshot of the gate state."""

    readers: int
    writer_active: bool
    writers_waiting: int


class AccessGate:
    """Readers/writer gate with writer preference.

    Thread Safety:
        All state lives behind one condition variable.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0

    def acquire_read(self, timeout: float | None = None) -> float:
        """Enter as a reader.

        Args:
            timeout: Seconds to wait; None waits forever, 0 never waits.

        Returns:
            Seconds spent waiting.

        Raises:
            GateTimeoutError: If the gate was not acquired in time.
        """
        start = time.monotonic()
        with self._cond:
            if not self._wait_for(
                lambda: not self._writer_active and self._writers_waiting == 0,
                timeout,
            ):
                raise GateTimeoutError(AccessMode.READ_ONLY.value, timeout or 0.0)
            self._readers += 1
        return time.monotonic() - start

    def release_read(self) -> None:
        with self._cond:
            if self._readers == 0:
                raise RuntimeError("release_read() called without a reader holding the gate")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self, timeout: float | None = None) -> float:
        """Enter as the single writer.

        Args:
            timeout: Seconds to wait; None waits forever, 0 never waits.

        Returns:
            Seconds spent waiting.

        Raises:
            GateTimeoutError: If the gate was not acquired in time.
        """
        start = time.monotonic()
        with self._cond:
            self._writers_waiting += 1
            try:
                acquired = self._wait_for(
                    lambda: not self._writer_active and self._readers == 0,
                    timeout,
                )
            finally:
                self._writers_waiting -= 1
            if not acquired:
                # Readers held back by this writer may proceed now
                self._cond.notify_all()
                raise GateTimeoutError(AccessMode.READ_WRITE.value, timeout or 0.0)
            self._writer_active = True
        return time.monotonic() - start

    def release_write(self) -> None:
        with self._cond:
            if not self._writer_active:
                raise RuntimeError("release_write() called without the writer holding the gate")
            self._writer_active = False
            self._cond.notify_all()

    def _wait_for(self, predicate, timeout: float | None) -> bool:
        if timeout is not None and timeout <= 0:
            return predicate()
        return self._cond.wait_for(predicate, timeout=timeout)

    @contextmanager
    def read(self, timeout: float | None = None) -> Iterator[float]:
        """Hold the gate as a reader for the duration of the block."""
        waited = self.acquire_read(timeout)
        try:
            yield waited
        finally:
            self.release_read()

    @contextmanager
    def write(self, timeout: float | None = None) -> Iterator[float]:
        """Hold the gate as the writer for the duration of the block."""
        waited = self.acquire_write(timeout)
        try:
            yield waited
        finally:
            self.release_write()

    def stats(self) -> GateStats:
        with self._cond:
            return GateStats(
                readers=self._readers,
                writer_active=self._writer_active,
                writers_waiting=self._writers_waiting,
            )
