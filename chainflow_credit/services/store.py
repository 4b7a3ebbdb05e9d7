"""Unit-of-work boundary shared by every credit component"""

import threading
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session, sessionmaker


class Store:
    """
    Owns the session factory and serializes units of work.

    One writer at a time: a unit of work holds the lock from first read to
    commit, so check-then-act sequences on a pool or application never
    interleave. Callers must not await inside a unit of work.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Commit on success, roll back and re-raise on any error"""
        with self._lock:
            db = self._session_factory()
            try:
                yield db
                db.commit()
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

    @contextmanager
    def session(self, db: Session | None = None) -> Iterator[Session]:
        """Join the caller's unit of work when given one, otherwise open a new one"""
        if db is not None:
            yield db
            return
        with self.transaction() as own:
            yield own
