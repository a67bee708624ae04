"""In-memory log of recent database operations.

An engine event hook times each statement and appends an entry to a
bounded ring buffer that the admin endpoint exposes.  Failed statements
are also logged through structlog.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List

import structlog
from sqlalchemy import event
from sqlalchemy.engine import Engine

logger = structlog.get_logger()

MAX_ENTRIES = 100
_MESSAGE_CHARS = 120


class QueryLog:
    """Thread-safe ring buffer of ``{timestamp, operation, success, ...}`` dicts."""

    def __init__(self, max_entries: int = MAX_ENTRIES) -> None:
        self._entries: Deque[Dict[str, Any]] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def record(
        self, operation: str, success: bool, duration_ms: float, message: str,
    ) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "operation": operation,
            "success": success,
            "duration_ms": round(duration_ms, 2),
            "message": message[:_MESSAGE_CHARS],
        }
        with self._lock:
            self._entries.appendleft(entry)

    def recent(self, limit: int = 20) -> List[Dict[str, Any]]:
        """Return up to *limit* entries, newest first."""
        with self._lock:
            return list(self._entries)[:limit]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


query_log = QueryLog()


def _operation(statement: str) -> str:
    words = statement.strip().split(None, 1)
    return words[0].upper() if words else "UNKNOWN"


def install_query_log(engine: Engine, log: QueryLog = query_log) -> None:
    """Attach timing hooks to *engine* that feed *log*."""

    @event.listens_for(engine, "before_cursor_execute")
    def _before(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start", []).append(time.perf_counter())

    @event.listens_for(engine, "after_cursor_execute")
    def _after(conn, cursor, statement, parameters, context, executemany):
        started = conn.info["query_start"].pop()
        log.record(
            _operation(statement),
            True,
            (time.perf_counter() - started) * 1000,
            " ".join(statement.split()),
        )

    @event.listens_for(engine, "handle_error")
    def _error(context):
        starts = context.connection.info.get("query_start") if context.connection else None
        started = starts.pop() if starts else time.perf_counter()
        statement = context.statement or ""
        log.record(
            _operation(statement),
            False,
            (time.perf_counter() - started) * 1000,
            str(context.original_exception),
        )
        logger.warning(
            "db_statement_failed",
            operation=_operation(statement),
            error=str(context.original_exception),
        )
