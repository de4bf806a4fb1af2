# shopsync/locks.py
"""Run-level mutual exclusion for sync runs.

On PostgreSQL the lock is a session advisory lock held on a dedicated
connection, so it also excludes runs in other processes. Other dialects get
an in-process lock.
"""
import threading
import zlib
from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .errors import StoreUnavailable, SyncAlreadyRunning
from .utils import logger


def lock_key(name: str) -> int:
    return zlib.crc32(name.encode("utf-8"))


class LocalRunLock:
    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()

    def acquire(self) -> bool:
        return self._lock.acquire(blocking=False)

    def release(self):
        self._lock.release()

    @contextmanager
    def hold(self):
        if not self.acquire():
            raise SyncAlreadyRunning(f"sync run {self.name!r} already in progress")
        try:
            yield
        finally:
            self.release()


class AdvisoryRunLock(LocalRunLock):
    def __init__(self, engine, name: str):
        super().__init__(name)
        self.engine = engine
        self.key = lock_key(name)
        self._conn = None

    def acquire(self) -> bool:
        # the local lock keeps threads of this process off the shared connection
        if not super().acquire():
            return False
        try:
            conn = self.engine.connect()
            got = conn.execute(text("SELECT pg_try_advisory_lock(:key)"), {"key": self.key}).scalar()
        except SQLAlchemyError as e:
            super().release()
            raise StoreUnavailable(f"could not take run lock: {e}") from e
        if not got:
            conn.close()
            super().release()
            return False
        self._conn = conn
        return True

    def release(self):
        conn, self._conn = self._conn, None
        try:
            if conn is not None:
                conn.execute(text("SELECT pg_advisory_unlock(:key)"), {"key": self.key})
                conn.close()
        except SQLAlchemyError as e:
            # the server drops session locks when the connection goes away
            logger.warning("Releasing run lock %s failed: %s", self.name, e)
            conn.invalidate()
        finally:
            super().release()


def make_run_lock(engine, name: str):
    if engine.dialect.name == "postgresql":
        return AdvisoryRunLock(engine, name)
    return LocalRunLock(name)
