"""Session snapshot and result persistence.

Sessions are stored whole, one record per ``(tool_id, user_id)``, so a
reload reconstructs the index, responses and elapsed time exactly.
Results are append-only and keyed by their generated id.
"""

from __future__ import annotations

import sqlite3
import threading
from typing import Protocol

from scoring_core.assessment.models import AssessmentResult, AssessmentSession

_CREATE_SQL = """\
CREATE TABLE IF NOT EXISTS assessment_sessions (
    tool_id     TEXT NOT NULL,
    user_id     TEXT NOT NULL,
    session_id  TEXT NOT NULL UNIQUE,
    snapshot    TEXT NOT NULL,
    updated_at  TEXT NOT NULL,
    PRIMARY KEY (tool_id, user_id)
);

CREATE TABLE IF NOT EXISTS assessment_results (
    result_id     TEXT PRIMARY KEY,
    tool_id       TEXT NOT NULL,
    user_id       TEXT NOT NULL,
    session_id    TEXT NOT NULL,
    completed_at  TEXT NOT NULL,
    payload       TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_assessment_results_subject
    ON assessment_results(tool_id, user_id, completed_at);
"""


class SessionStore(Protocol):
    """What the assessment engine needs from persistence."""

    def save_session(self, session: AssessmentSession) -> None: ...

    def load_session(self, tool_id: str, user_id: str) -> AssessmentSession | None: ...

    def get_session_by_id(self, session_id: str) -> AssessmentSession | None: ...

    def delete_session(self, tool_id: str, user_id: str) -> None: ...

    def append_result(self, result: AssessmentResult) -> None: ...

    def results_for(self, tool_id: str, user_id: str) -> list[AssessmentResult]: ...

    def get_result(self, result_id: str) -> AssessmentResult | None: ...


class SQLiteAssessmentStore:
    """Thread-safe SQLite persistence for sessions and results.

    Parameters
    ----------
    conn:
        An open ``sqlite3.Connection``.
    lock:
        Optional ``threading.RLock`` guarding the connection.  One is
        created automatically if not supplied.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        lock: threading.RLock | None = None,
    ) -> None:
        self._conn = conn
        self._lock = lock if lock is not None else threading.RLock()
        with self._lock:
            self._conn.executescript(_CREATE_SQL)

    def save_session(self, session: AssessmentSession) -> None:
        with self._lock:
            self._conn.execute(
                """INSERT OR REPLACE INTO assessment_sessions
                   (tool_id, user_id, session_id, snapshot, updated_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (
                    session.tool_id,
                    session.user_id,
                    session.id,
                    session.model_dump_json(),
                    session.last_updated_at.isoformat(),
                ),
            )
            self._conn.commit()

    def load_session(self, tool_id: str, user_id: str) -> AssessmentSession | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT snapshot FROM assessment_sessions WHERE tool_id = ? AND user_id = ?",
                (tool_id, user_id),
            ).fetchone()
        if row is None:
            return None
        return AssessmentSession.model_validate_json(row[0])

    def get_session_by_id(self, session_id: str) -> AssessmentSession | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT snapshot FROM assessment_sessions WHERE session_id = ?",
                (session_id,),
            ).fetchone()
        if row is None:
            return None
        return AssessmentSession.model_validate_json(row[0])

    def delete_session(self, tool_id: str, user_id: str) -> None:
        with self._lock:
            self._conn.execute(
                "DELETE FROM assessment_sessions WHERE tool_id = ? AND user_id = ?",
                (tool_id, user_id),
            )
            self._conn.commit()

    def append_result(self, result: AssessmentResult) -> None:
        """Insert a result.  Raises ``sqlite3.IntegrityError`` on a reused id."""
        with self._lock:
            self._conn.execute(
                """INSERT INTO assessment_results
                   (result_id, tool_id, user_id, session_id, completed_at, payload)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    result.id,
                    result.tool_id,
                    result.user_id,
                    result.session_id,
                    result.completed_at.isoformat(),
                    result.model_dump_json(),
                ),
            )
            self._conn.commit()

    def results_for(self, tool_id: str, user_id: str) -> list[AssessmentResult]:
        """Results for one subject, oldest first."""
        with self._lock:
            rows = self._conn.execute(
                """SELECT payload FROM assessment_results
                   WHERE tool_id = ? AND user_id = ?
                   ORDER BY completed_at, rowid""",
                (tool_id, user_id),
            ).fetchall()
        return [AssessmentResult.model_validate_json(r[0]) for r in rows]

    def get_result(self, result_id: str) -> AssessmentResult | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT payload FROM assessment_results WHERE result_id = ?",
                (result_id,),
            ).fetchone()
        if row is None:
            return None
        return AssessmentResult.model_validate_json(row[0])

    def reset(self) -> None:
        """Clear all records.  Intended for tests."""
        with self._lock:
            self._conn.execute("DELETE FROM assessment_sessions")
            self._conn.execute("DELETE FROM assessment_results")
            self._conn.commit()


class InMemoryAssessmentStore:
    """Dictionary-backed store with the same surface as :class:`SQLiteAssessmentStore`.

    Snapshots are copied in and out so callers never share mutable state
    with the store.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sessions: dict[tuple[str, str], AssessmentSession] = {}
        self._results: dict[str, AssessmentResult] = {}

    def save_session(self, session: AssessmentSession) -> None:
        with self._lock:
            self._sessions[(session.tool_id, session.user_id)] = session.model_copy(deep=True)

    def load_session(self, tool_id: str, user_id: str) -> AssessmentSession | None:
        with self._lock:
            session = self._sessions.get((tool_id, user_id))
            return session.model_copy(deep=True) if session is not None else None

    def get_session_by_id(self, session_id: str) -> AssessmentSession | None:
        with self._lock:
            for session in self._sessions.values():
                if session.id == session_id:
                    return session.model_copy(deep=True)
        return None

    def delete_session(self, tool_id: str, user_id: str) -> None:
        with self._lock:
            self._sessions.pop((tool_id, user_id), None)

    def append_result(self, result: AssessmentResult) -> None:
        with self._lock:
            if result.id in self._results:
                raise KeyError(f"Result already stored: {result.id}")
            self._results[result.id] = result

    def results_for(self, tool_id: str, user_id: str) -> list[AssessmentResult]:
        with self._lock:
            return [
                r for r in self._results.values()
                if r.tool_id == tool_id and r.user_id == user_id
            ]

    def get_result(self, result_id: str) -> AssessmentResult | None:
        with self._lock:
            return self._results.get(result_id)

    def reset(self) -> None:
        with self._lock:
            self._sessions.clear()
            self._results.clear()
