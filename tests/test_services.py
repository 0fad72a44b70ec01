"""
Store tests: Signal uniqueness and transitions, feedback logs, retry queue.
"""

from datetime import datetime, timedelta, timezone

import pytest

from relevance.errors import DataConsistencyError, SignalNotFoundError
from relevance.models import FeedbackAction, Provenance, ScoringMethod, Signal, SignalState, UserFeedbackEvent
from relevance.services import (
    InMemoryChunkStore,
    InMemoryFeedbackLog,
    InMemorySignalStore,
    JsonlFeedbackLog,
    RetryQueue,
    open_feedback_log,
)

from tests.conftest import make_chunk

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _signal(chunk_id: str, user_id: str = "u1", score: float = 0.5, created_at: datetime = NOW) -> Signal:
    return Signal(
        user_id=user_id,
        chunk_id=chunk_id,
        relevance_score=score,
        provenance=Provenance(method=ScoringMethod.HEURISTIC),
        created_at=created_at,
    )


class TestSignalStore:
    def test_one_signal_per_user_chunk(self):
        store = InMemorySignalStore()
        store.insert(_signal("c1"))
        with pytest.raises(DataConsistencyError):
            store.insert(_signal("c1"))
        store.insert(_signal("c1", user_id="u2"))
        assert store.signaled_chunk_ids("u1") == {"c1"}

    def test_mark_action_once(self):
        store = InMemorySignalStore()
        signal = store.insert(_signal("c1"))
        updated = store.mark_action(signal.id, FeedbackAction.SAVED, NOW)
        assert updated.state == SignalState.SAVED
        assert updated.actioned_at == NOW
        with pytest.raises(DataConsistencyError):
            store.mark_action(signal.id, FeedbackAction.SKIPPED)
        assert store.get(signal.id).state == SignalState.SAVED

    def test_unknown_signal(self):
        store = InMemorySignalStore()
        with pytest.raises(SignalNotFoundError):
            store.get("missing")
        with pytest.raises(SignalNotFoundError):
            store.mark_action("missing", FeedbackAction.SAVED)

    def test_list_filters_by_state(self):
        store = InMemorySignalStore()
        a = store.insert(_signal("a", score=0.2))
        store.insert(_signal("b", score=0.9))
        store.mark_action(a.id, FeedbackAction.SKIPPED)
        assert [s.chunk_id for s in store.list_for_user("u1")] == ["b", "a"]
        assert [s.chunk_id for s in store.list_for_user("u1", SignalState.PENDING)] == ["b"]

    def test_update_score_only_when_pending(self):
        store = InMemorySignalStore()
        a = store.insert(_signal("a"))
        store.insert(_signal("b"))
        store.mark_action(a.id, FeedbackAction.SAVED)
        provenance = Provenance(method=ScoringMethod.LLM)
        assert store.update_score("u1", "a", 0.9, provenance) is False
        assert store.update_score("u1", "b", 0.9, provenance) is True
        assert store.find("u1", "b").relevance_score == 0.9
        assert store.update_score("u1", "zzz", 0.9, provenance) is False

    def test_expire_pending_keeps_terminal_and_reserves_pair(self):
        store = InMemorySignalStore()
        old = NOW - timedelta(days=120)
        stale = store.insert(_signal("stale", created_at=old))
        done = store.insert(_signal("done", created_at=old))
        store.insert(_signal("fresh"))
        store.mark_action(done.id, FeedbackAction.SAVED)
        assert store.expire_pending(NOW - timedelta(days=90)) == 1
        with pytest.raises(SignalNotFoundError):
            store.get(stale.id)
        assert store.get(done.id).state == SignalState.SAVED
        with pytest.raises(DataConsistencyError):
            store.insert(_signal("stale"))

    def test_count_created_since(self):
        store = InMemorySignalStore()
        store.insert(_signal("a", created_at=NOW - timedelta(days=1)))
        store.insert(_signal("b"))
        store.insert(_signal("c"))
        assert store.count_created_since("u1", NOW.replace(hour=0)) == 2


class TestFeedbackLogs:
    def _event(self, chunk_id, user_id="u1"):
        return UserFeedbackEvent(user_id=user_id, chunk_id=chunk_id, action=FeedbackAction.SAVED, timestamp=NOW)

    def test_in_memory_filters_by_user(self):
        log = InMemoryFeedbackLog()
        log.append(self._event("a"))
        log.append(self._event("b", user_id="u2"))
        assert [e.chunk_id for e in log.events_for_user("u1")] == ["a"]
        assert len(log) == 2

    def test_jsonl_persists_across_instances(self, tmp_path):
        path = tmp_path / "events.jsonl"
        JsonlFeedbackLog(path).append(self._event("a"))
        JsonlFeedbackLog(path).append(self._event("b"))
        events = JsonlFeedbackLog(path).events_for_user("u1")
        assert [e.chunk_id for e in events] == ["a", "b"]
        assert events[0] == self._event("a")

    def test_jsonl_skips_malformed_lines(self, tmp_path):
        path = tmp_path / "events.jsonl"
        log = JsonlFeedbackLog(path)
        log.append(self._event("a"))
        with open(path, "a", encoding="utf-8") as f:
            f.write("{not json\n")
            f.write('{"user_id": "u1"}\n')
        log.append(self._event("b"))
        assert [e.chunk_id for e in log.events_for_user("u1")] == ["a", "b"]

    def test_jsonl_missing_file_is_empty(self, tmp_path):
        assert JsonlFeedbackLog(tmp_path / "nope.jsonl").events_for_user("u1") == []

    def test_open_feedback_log(self, tmp_path):
        assert isinstance(open_feedback_log(None), InMemoryFeedbackLog)
        log = open_feedback_log(tmp_path)
        assert isinstance(log, JsonlFeedbackLog)
        assert log.path == tmp_path / "feedback_events.jsonl"


class TestChunkStore:
    def test_since_filter_and_order(self):
        store = InMemoryChunkStore([
            make_chunk("new", created_at=NOW),
            make_chunk("old", created_at=NOW - timedelta(days=3)),
        ])
        assert [c.id for c in store.list_chunks()] == ["old", "new"]
        assert [c.id for c in store.list_chunks(since=NOW - timedelta(days=1))] == ["new"]
        assert store.embeddings() == {"new": None, "old": None}


class TestRetryQueue:
    def test_dedupes_and_drains(self):
        queue = RetryQueue()
        queue.add("u1", "a")
        queue.add("u1", "a")
        queue.add("u1", "b")
        queue.add("u2", "c")
        assert queue.pending("u1") == ["a", "b"]
        assert len(queue) == 3
        assert queue.drain("u1") == ["a", "b"]
        assert queue.pending("u1") == []
        assert queue.drain("u1") == []
