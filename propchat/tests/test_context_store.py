"""Tests for the bounded per-session conversation history."""

import threading
from datetime import datetime, timezone

import pytest

from propchat.chat import ContextStore, ConversationTurn


@pytest.fixture
def store():
    return ContextStore(history_limit=10)


class TestAppend:
    def test_append_creates_session(self, store):
        assert "s1" not in store
        turn = store.append("s1", "hi", "hello")
        assert "s1" in store
        assert isinstance(turn, ConversationTurn)
        assert turn.user == "hi"
        assert turn.assistant == "hello"
        assert turn.timestamp.tzinfo is not None

    def test_explicit_timestamp_kept(self, store):
        ts = datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert store.append("s1", "a", "b", timestamp=ts).timestamp == ts

    def test_eleventh_append_evicts_oldest(self, store):
        for i in range(11):
            store.append("s1", f"q{i}", f"a{i}")

        turns = store.recent("s1")
        assert len(turns) == 10
        assert turns[0].user == "q1"
        assert turns[-1].user == "q10"

    def test_order_preserved(self, store):
        for i in range(4):
            store.append("s1", f"q{i}", f"a{i}")
        assert [t.user for t in store.recent("s1")] == ["q0", "q1", "q2", "q3"]

    def test_sessions_are_independent(self, store):
        store.append("s1", "one", "1")
        store.append("s2", "two", "2")
        assert [t.user for t in store.recent("s1")] == ["one"]
        assert [t.user for t in store.recent("s2")] == ["two"]
        assert store.session_count() == 2

    def test_limit_must_be_positive(self):
        with pytest.raises(ValueError):
            ContextStore(history_limit=0)


class TestRecent:
    def test_unknown_session_is_empty(self, store):
        assert store.recent("missing") == []
        assert "missing" not in store

    def test_last_n(self, store):
        for i in range(5):
            store.append("s1", f"q{i}", f"a{i}")
        assert [t.user for t in store.recent("s1", 3)] == ["q2", "q3", "q4"]

    def test_n_larger_than_history(self, store):
        store.append("s1", "q", "a")
        assert len(store.recent("s1", 3)) == 1

    def test_zero_returns_nothing(self, store):
        store.append("s1", "q", "a")
        assert store.recent("s1", 0) == []

    def test_returns_copy(self, store):
        store.append("s1", "q", "a")
        turns = store.recent("s1")
        turns.clear()
        assert len(store.recent("s1")) == 1


class TestClear:
    def test_clear_known_session(self, store):
        store.append("s1", "q", "a")
        assert store.clear("s1") is True
        assert store.recent("s1") == []
        assert store.session_count() == 0

    def test_clear_unknown_session(self, store):
        assert store.clear("nope") is False


class TestConcurrency:
    def test_concurrent_appends_stay_bounded(self):
        store = ContextStore(history_limit=10)

        def worker(n):
            for i in range(50):
                store.append("shared", f"w{n}-{i}", "ok")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store.recent("shared")) == 10
        assert store.session_count() == 1

    def test_concurrent_session_creation(self):
        store = ContextStore()

        def worker(n):
            store.append(f"s{n % 4}", "q", "a")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(40)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.session_count() == 4
        assert sum(len(store.recent(f"s{i}")) for i in range(4)) == 40
