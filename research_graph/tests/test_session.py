"""Tests for ResearchSession."""

import pytest

from research_graph.adapters.serialization import GraphDeserializationError
from research_graph.layout.cache import LayoutCache
from research_graph.models.research_step import StepType
from research_graph.session import ResearchSession
from research_graph.store.graph_store import ResearchGraphStore
from research_graph.tests.factories import FakeClock, make_step


class InMemoryRepository:
    def __init__(self) -> None:
        self.blobs: dict[str, str] = {}

    def save(self, session_id: str, blob: str) -> None:
        self.blobs[session_id] = blob

    def load(self, session_id: str) -> str | None:
        return self.blobs.get(session_id)


class BrokenRepository:
    def save(self, session_id: str, blob: str) -> None:
        raise OSError("disk full")

    def load(self, session_id: str) -> str | None:
        raise OSError("disk gone")


@pytest.fixture
def session() -> ResearchSession:
    return ResearchSession(session_id="s-1", clock=FakeClock())


class TestResearchSession:
    def test_sessions_are_isolated(self):
        first = ResearchSession()
        second = ResearchSession()
        first.store.add_node(make_step("a"))
        assert first.session_id != second.session_id
        assert len(second.store) == 0
        assert first.layout_cache is not second.layout_cache

    def test_snapshot(self, session):
        session.store.add_node(make_step("q", StepType.user_query))
        session.store.add_node(make_step("s"), parent_id="node-q")
        snapshot = session.snapshot()
        assert snapshot.session_id == "s-1"
        assert snapshot.version == session.store.version
        assert [n.id for n in snapshot.nodes] == ["node-q", "node-s"]
        assert snapshot.statistics["totalNodes"] == 2

    def test_layout_is_cached_until_structure_changes(self, session):
        session.store.add_node(make_step("q", StepType.user_query))
        first = session.layout()
        session.store.update_node_metadata("node-q", {"phase": "x"})
        assert session.layout() is first

        session.store.add_node(make_step("s"), parent_id="node-q")
        assert session.layout() is not first

    def test_injected_cache(self):
        cache = LayoutCache(max_entries=1)
        session = ResearchSession(layout_cache=cache)
        session.store.add_node(make_step("a"))
        session.layout()
        assert len(cache) == 1

    def test_archive_uses_default_ceiling(self, session):
        session.store.add_node(make_step("a"))
        assert session.archive() == []
        assert session.archive(max_nodes=0) == []

    def test_persist_and_load(self, session):
        repository = InMemoryRepository()
        session.store.add_node(make_step("q", StepType.user_query))
        assert session.persist(repository)

        loaded = ResearchSession.load("s-1", repository)
        assert loaded.session_id == "s-1"
        assert loaded.store.version == session.store.version
        assert loaded.store.root_node == "node-q"

    def test_load_nothing_stored(self):
        assert ResearchSession.load("missing", InMemoryRepository()) is None

    def test_storage_failures_are_logged(self, session, caplog):
        assert session.persist(BrokenRepository()) is False
        assert ResearchSession.load("s-1", BrokenRepository()) is None
        assert "failed to persist" in caplog.text

    def test_load_malformed_blob(self):
        repository = InMemoryRepository()
        repository.blobs["bad"] = "{not json"
        with pytest.raises(GraphDeserializationError):
            ResearchSession.load("bad", repository)


class TestInjection:
    """Collaborators passed in are used as-is, even when empty."""

    def test_empty_store_and_cache_kept(self):
        store = ResearchGraphStore()
        cache = LayoutCache()
        session = ResearchSession(store=store, layout_cache=cache)
        assert session.store is store
        assert session.layout_cache is cache

    def test_empty_persisted_session_keeps_version(self, session):
        repository = InMemoryRepository()
        session.store.add_node(make_step("a"))
        session.store.add_node(make_step("b"))
        session.store.reset()
        session.store.reset()
        assert session.store.version == 2
        session.persist(repository)

        loaded = ResearchSession.load("s-1", repository)
        assert len(loaded.store) == 0
        assert loaded.store.version == 2

    def test_snapshot_counts_stay_integers(self, session):
        session.store.add_node(make_step("a"))
        statistics = session.snapshot().statistics
        assert statistics["totalNodes"] == 1
        assert isinstance(statistics["totalNodes"], int)
        assert isinstance(statistics["errorCount"], int)
        assert isinstance(statistics["successRate"], float)
