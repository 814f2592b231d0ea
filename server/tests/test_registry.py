"""Tests for the session registry and its per-session locks."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from server.registry import SessionRegistry
from server.session_db import SqliteSessionRepository


@pytest.fixture
def registry(tmp_path) -> SessionRegistry:
    return SessionRegistry(SqliteSessionRepository(tmp_path / "graphs.db"))


class TestSessionLocks:
    def test_locked_blocks_other_threads(self, registry):
        registry.create("s-1")
        entered = threading.Event()

        def worker():
            with registry.locked("s-1"):
                entered.set()

        with registry.locked("s-1") as session:
            assert session is registry.get("s-1")
            thread = threading.Thread(target=worker)
            thread.start()
            assert not entered.wait(timeout=0.2)

        thread.join(timeout=5)
        assert entered.is_set()

    def test_other_sessions_not_blocked(self, registry):
        registry.create("s-1")
        registry.create("s-2")
        entered = threading.Event()

        def worker():
            with registry.locked("s-2"):
                entered.set()

        with registry.locked("s-1"):
            thread = threading.Thread(target=worker)
            thread.start()
            assert entered.wait(timeout=5)
        thread.join(timeout=5)

    def test_unknown_session_yields_none(self, registry):
        with registry.locked("missing") as session:
            assert session is None

    def test_concurrent_mutations_serialized(self, registry):
        registry.create("s-1")

        def add(i: int) -> None:
            with registry.locked("s-1") as session:
                session.store.add_node({"id": f"n{i}", "type": "WEB_RESEARCH"}, parent_id="node-n0")

        with registry.locked("s-1") as session:
            session.store.add_node({"id": "n0", "type": "USER_QUERY"})
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(add, range(1, 41)))

        store = registry.get("s-1").store
        assert len(store) == 40
        assert len(store.get_edges()) == 39
        # one bump per node plus one per parent edge
        assert store.version == 40 + 39
        assert len(store.get_node("node-n0").children) == 39

    def test_discard(self, registry):
        registry.create("s-1")
        assert registry.discard("s-1")
        assert registry.discard("s-1") is False
        assert "s-1" not in registry
