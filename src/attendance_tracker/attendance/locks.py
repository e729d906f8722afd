from __future__ import annotations

import logging
import math
import threading
from contextlib import contextmanager
from typing import ContextManager, Dict, Iterator, List, Protocol

from ..core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS
from ..core.exceptions import ConcurrentModificationError
from ..database.connection import DatabaseConnection

logger = logging.getLogger(__name__)


def record_lock_key(user_id: int, session_id: int) -> str:
    """Lock key shared by every writer of one (user, session) attendance record."""
    return f"attendance:{int(user_id)}:{int(session_id)}"


class RecordLockManager(Protocol):
    def hold(self, key: str) -> ContextManager[None]:
        raise NotImplementedError


class InProcessLockManager:
    """Keyed mutexes with a bounded wait, for a single-process deployment."""

    def __init__(self, *, timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS):
        self._timeout = float(timeout_seconds)
        self._guard = threading.Lock()
        # key -> [lock, number of holders and waiters]
        self._locks: Dict[str, List] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1

        acquired = entry[0].acquire(timeout=self._timeout)
        try:
            if not acquired:
                logger.warning("Timed out waiting for lock %s", key)
                raise ConcurrentModificationError()
            yield
        finally:
            if acquired:
                entry[0].release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    self._locks.pop(key, None)


class MySQLNamedLockManager:
    """Cross-process record lock built on MySQL ``GET_LOCK``."""

    def __init__(self, conn_factory: DatabaseConnection, *, timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS):
        self._conn_factory = conn_factory
        self._timeout = max(0, math.ceil(timeout_seconds))

    def _lock_name(self, key: str) -> str:
        # MySQL limits lock names to 64 characters.
        return f"{self._conn_factory.database}:{key}"[:64]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        name = self._lock_name(key)
        conn = self._conn_factory.connect()
        try:
            cur = conn.cursor()
            cur.execute("SELECT GET_LOCK(%s, %s)", (name, self._timeout))
            (acquired,) = cur.fetchone()
            if acquired != 1:
                logger.warning("Timed out waiting for lock %s", name)
                raise ConcurrentModificationError()
            try:
                yield
            finally:
                cur.execute("SELECT RELEASE_LOCK(%s)", (name,))
                cur.fetchone()
                cur.close()
        finally:
            conn.close()
