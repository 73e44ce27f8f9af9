"""Tests for scoring_core.interaction.store."""

from __future__ import annotations

import sqlite3
import threading

import pytest
from conftest import make_event

from scoring_core.interaction.pipeline import LeadScore
from scoring_core.interaction.rules import LeadTier
from scoring_core.interaction.store import (
    InMemoryInteractionStore,
    InteractionStore,
    SubjectLocks,
)


def _make_sqlite_store(conn=None):
    if conn is None:
        conn = sqlite3.connect(":memory:", check_same_thread=False)
        conn.row_factory = sqlite3.Row
    return InteractionStore(conn)


@pytest.fixture(params=["sqlite", "memory"])
def store(request):
    if request.param == "sqlite":
        return _make_sqlite_store()
    return InMemoryInteractionStore()


def _score(total, tier=LeadTier.BROWSER):
    return LeadScore(total, 0, 0, 0, tier, 0)


class TestInteractionStore:
    def test_events_round_trip_in_order(self, store):
        store.append_event("u1", make_event("page_visit", days_ago=2))
        store.append_event("u1", make_event("time_on_page", days_ago=1, data={"time_spent": 4200}))
        store.append_event("u1", make_event("consecutive_days", data={"day_count": 3, "referrer": "r"}))
        events = store.events_for("u1")
        assert [e.event_type for e in events] == ["page_visit", "time_on_page", "consecutive_days"]
        assert events[1].payload.time_spent_ms == 4200
        assert events[2].payload.day_count == 3
        assert events[2].payload.referrer == "r"
        assert events[0].timestamp == make_event("page_visit", days_ago=2).timestamp

    def test_events_are_per_user(self, store):
        store.append_event("u1", make_event("page_visit"))
        store.append_event("u2", make_event("bounce"))
        assert [e.event_type for e in store.events_for("u2")] == ["bounce"]
        assert store.events_for("nobody") == []

    def test_unknown_event_type_is_kept(self, store):
        store.append_event("u1", make_event("custom_xyz", data={"foo": "bar"}))
        [event] = store.events_for("u1")
        assert event.event_type == "custom_xyz"
        assert event.payload.extra == {"foo": "bar"}

    def test_latest_score_and_history(self, store):
        assert store.latest_score("u1") is None
        store.save_score("u1", _score(10))
        store.save_score("u1", _score(40, LeadTier.ENGAGED))
        assert store.latest_score("u1") == _score(40, LeadTier.ENGAGED)
        assert [s.total for s in store.score_history("u1")] == [40, 10]
        assert [s.total for s in store.score_history("u1", limit=1)] == [40]

    def test_reset(self, store):
        store.append_event("u1", make_event("page_visit"))
        store.save_score("u1", _score(1))
        store.reset()
        assert store.events_for("u1") == []
        assert store.latest_score("u1") is None


class TestSQLiteSharing:
    def test_shared_connection(self):
        conn = sqlite3.connect(":memory:")
        first = InteractionStore(conn)
        first.append_event("u1", make_event("page_visit"))
        second = InteractionStore(conn)
        assert len(second.events_for("u1")) == 1


class TestSubjectLocks:
    def test_entry_dropped_after_release(self):
        locks = SubjectLocks()
        with locks.hold("a"):
            with locks.hold("b"):
                assert len(locks) == 2
        assert len(locks) == 0

    def test_reentrant(self):
        locks = SubjectLocks()
        with locks.hold("a"):
            with locks.hold("a"):
                assert len(locks) == 1
            assert len(locks) == 1
        assert len(locks) == 0

    def test_released_on_error(self):
        locks = SubjectLocks()
        with pytest.raises(RuntimeError):
            with locks.hold("a"):
                raise RuntimeError("boom")
        assert len(locks) == 0

    def test_same_key_serializes(self):
        locks = SubjectLocks()
        entered = threading.Event()

        def contend():
            with locks.hold("shared"):
                entered.set()

        with locks.hold("shared"):
            worker = threading.Thread(target=contend)
            worker.start()
            assert not entered.wait(0.1)
            with locks.hold("other"):
                pass
            assert len(locks) == 1
        worker.join()
        assert entered.is_set()
        assert len(locks) == 0

    def test_concurrent_holders_leave_nothing_behind(self):
        locks = SubjectLocks()
        counter = {"n": 0}

        def bump():
            for _ in range(50):
                with locks.hold("shared"):
                    counter["n"] += 1

        threads = [threading.Thread(target=bump) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert counter["n"] == 400
        assert len(locks) == 0
