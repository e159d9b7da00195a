# backend/db.py
from __future__ import annotations

import threading
from concurrent.futures import Future
from datetime import datetime, timezone
from typing import Any, Callable

from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import text

__all__ = ["db", "migrate", "ConnectionHandle", "ping_engine"]

db = SQLAlchemy()
migrate = Migrate()


def ping_engine() -> datetime:
    """Open one pooled connection and run a trivial query against it."""
    with db.engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return datetime.now(timezone.utc)


class ConnectionHandle:
    """
    Lazily establishes the process-wide database connection.

    The first caller runs `connect`; callers arriving while that attempt is in
    flight wait on the same Future instead of opening their own. A failed
    attempt is handed to every waiter and then forgotten, so the next call
    starts a fresh one.
    """

    def __init__(self, connect: Callable[[], Any] = ping_engine):
        self._connect = connect
        self._lock = threading.Lock()
        self._inflight: Future | None = None
        self._result: Any = None
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    def ensure(self) -> Any:
        if self._ready:
            return self._result

        with self._lock:
            if self._ready:
                return self._result
            fut = self._inflight
            owner = fut is None
            if owner:
                fut = self._inflight = Future()

        if not owner:
            return fut.result()

        try:
            value = self._connect()
        except BaseException as exc:
            with self._lock:
                self._inflight = None
            fut.set_exception(exc)
            raise

        with self._lock:
            self._result = value
            self._ready = True
            self._inflight = None
        fut.set_result(value)
        return value
