"""Interaction history and score snapshot persistence.

:class:`InteractionStore` shares an existing SQLite connection, like the
rest of the persistence layer.  :class:`InMemoryInteractionStore` exposes
the same surface for tests and per-request use.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Protocol

from scoring_core.interaction.events import InteractionEvent, event_from_dict
from scoring_core.interaction.pipeline import LeadScore

_CREATE_SQL = """\
CREATE TABLE IF NOT EXISTS interaction_events (
    seq          INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id      TEXT NOT NULL,
    event_type   TEXT NOT NULL,
    session_id   TEXT NOT NULL DEFAULT '',
    occurred_at  TEXT NOT NULL,
    event_data   TEXT NOT NULL DEFAULT '{}'
);
CREATE INDEX IF NOT EXISTS idx_interaction_events_user
    ON interaction_events(user_id, seq);

CREATE TABLE IF NOT EXISTS lead_scores (
    seq                     INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id                 TEXT NOT NULL,
    total                   INTEGER NOT NULL,
    engagement              INTEGER NOT NULL,
    readiness               INTEGER NOT NULL,
    behavioral              INTEGER NOT NULL,
    tier                    TEXT NOT NULL,
    conversion_probability  INTEGER NOT NULL,
    calculated_at           TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_lead_scores_user
    ON lead_scores(user_id, seq);
"""


class InteractionHistory(Protocol):
    """What the recorder needs from a store."""

    def append_event(self, user_id: str, event: InteractionEvent) -> None: ...

    def events_for(self, user_id: str) -> list[InteractionEvent]: ...

    def save_score(self, user_id: str, score: LeadScore) -> None: ...

    def latest_score(self, user_id: str) -> LeadScore | None: ...


class SubjectLocks:
    """One re-entrant lock per subject key, alive only while held.

    Writers for the same user (or session) serialize; different subjects
    never contend.  An entry is dropped when its last holder or waiter
    leaves.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, list[Any]] = {}  # key -> [RLock, holders]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.RLock(), 0]
                self._locks[key] = entry
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


def _row_to_event(row: sqlite3.Row | tuple[Any, ...]) -> InteractionEvent | None:
    user_id, event_type, session_id, occurred_at, event_data = row
    return event_from_dict({
        "user_id": user_id,
        "event_type": event_type,
        "session_id": session_id,
        "timestamp": occurred_at,
        "event_data": json.loads(event_data) if event_data else {},
    })


class InteractionStore:
    """Thread-safe SQLite persistence for event histories and score snapshots.

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

    def append_event(self, user_id: str, event: InteractionEvent) -> None:
        record = event.to_dict()
        with self._lock:
            self._conn.execute(
                """INSERT INTO interaction_events
                   (user_id, event_type, session_id, occurred_at, event_data)
                   VALUES (?, ?, ?, ?, ?)""",
                (
                    user_id,
                    event.event_type,
                    event.session_id,
                    event.timestamp.isoformat(),
                    json.dumps(record["event_data"], default=str),
                ),
            )
            self._conn.commit()

    def events_for(self, user_id: str) -> list[InteractionEvent]:
        """Return the user's history in append order."""
        with self._lock:
            rows = self._conn.execute(
                """SELECT user_id, event_type, session_id, occurred_at, event_data
                   FROM interaction_events WHERE user_id = ? ORDER BY seq""",
                (user_id,),
            ).fetchall()
        events = [_row_to_event(tuple(r)) for r in rows]
        return [e for e in events if e is not None]

    def save_score(self, user_id: str, score: LeadScore) -> None:
        with self._lock:
            self._conn.execute(
                """INSERT INTO lead_scores
                   (user_id, total, engagement, readiness, behavioral, tier,
                    conversion_probability, calculated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    user_id,
                    score.total,
                    score.engagement,
                    score.readiness,
                    score.behavioral,
                    score.tier.value,
                    score.conversion_probability,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
            self._conn.commit()

    def _score_rows(self, user_id: str, limit: int) -> list[tuple[Any, ...]]:
        with self._lock:
            rows = self._conn.execute(
                """SELECT total, engagement, readiness, behavioral, tier,
                          conversion_probability
                   FROM lead_scores WHERE user_id = ?
                   ORDER BY seq DESC LIMIT ?""",
                (user_id, limit),
            ).fetchall()
        return [tuple(r) for r in rows]

    def latest_score(self, user_id: str) -> LeadScore | None:
        rows = self._score_rows(user_id, 1)
        if not rows:
            return None
        return _row_to_score(rows[0])

    def score_history(self, user_id: str, *, limit: int = 50) -> list[LeadScore]:
        """Score snapshots, newest first."""
        return [_row_to_score(r) for r in self._score_rows(user_id, limit)]

    def reset(self) -> None:
        """Clear all records.  Intended for tests."""
        with self._lock:
            self._conn.execute("DELETE FROM interaction_events")
            self._conn.execute("DELETE FROM lead_scores")
            self._conn.commit()


def _row_to_score(row: tuple[Any, ...]) -> LeadScore:
    total, engagement, readiness, behavioral, tier, probability = row
    return LeadScore.from_dict({
        "total": total,
        "engagement": engagement,
        "readiness": readiness,
        "behavioral": behavioral,
        "tier": tier,
        "conversion_probability": probability,
    })


class InMemoryInteractionStore:
    """Dictionary-backed store with the same surface as :class:`InteractionStore`."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._events: dict[str, list[InteractionEvent]] = {}
        self._scores: dict[str, list[LeadScore]] = {}

    def append_event(self, user_id: str, event: InteractionEvent) -> None:
        with self._lock:
            self._events.setdefault(user_id, []).append(event)

    def events_for(self, user_id: str) -> list[InteractionEvent]:
        with self._lock:
            return list(self._events.get(user_id, []))

    def save_score(self, user_id: str, score: LeadScore) -> None:
        with self._lock:
            self._scores.setdefault(user_id, []).append(score)

    def latest_score(self, user_id: str) -> LeadScore | None:
        with self._lock:
            history = self._scores.get(user_id)
            return history[-1] if history else None

    def score_history(self, user_id: str, *, limit: int = 50) -> list[LeadScore]:
        with self._lock:
            return list(reversed(self._scores.get(user_id, [])))[:limit]

    def reset(self) -> None:
        with self._lock:
            self._events.clear()
            self._scores.clear()
