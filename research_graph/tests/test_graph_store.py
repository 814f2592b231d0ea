"""Tests for ResearchGraphStore mutations, queries and versioning."""

import pytest
from pydantic import ValidationError

from research_graph.models.graph import EdgeType
from research_graph.models.graph_event import GraphEventType
from research_graph.models.research_step import Citation, NodeMetadata, StepType
from research_graph.store.graph_store import ERROR_EDGE_LABEL, ResearchGraphStore

from research_graph.tests.factories import make_step


class TestEndToEnd:
    """A query, a search step, then a failure on the search."""

    def test_error_flow(self, store, sink):
        a = store.add_node(make_step("a", StepType.user_query))
        assert store.root_node == a.id
        assert a.level == 0

        b = store.add_node(make_step("b"), parent_id=a.id)
        assert b.level == 1
        assert store.get_edge("edge-node-a-node-b-sequential") is not None

        assert store.mark_node_error(b.id, "timeout")
        assert store.get_node(b.id).type == StepType.error

        error_edges = store.edges_by_type(EdgeType.error)
        assert len(error_edges) == 1
        assert error_edges[0].source == a.id
        assert error_edges[0].target == b.id
        assert error_edges[0].label == ERROR_EDGE_LABEL
        assert len(store.get_edges()) == 2

        errors = sink.of_type(GraphEventType.node_error)
        assert len(errors) == 1
        assert errors[0].node_id == b.id
        assert errors[0].error == "timeout"

        stats = store.get_statistics()
        assert stats.total_nodes == 2
        assert stats.error_count == 1
        assert stats.success_rate == 0.5


class TestAddNode:
    def test_node_id_derived_from_step(self, store):
        node = store.add_node(make_step("s1"))
        assert node.id == "node-s1"
        assert node.step_id == "s1"
        assert store.node_id_for_step("s1") == "node-s1"

    def test_accepts_plain_dict(self, store):
        node = store.add_node({"id": "q", "type": "USER_QUERY", "title": "What?"})
        assert node.type == StepType.user_query
        assert node.title == "What?"

    def test_rejects_malformed_step(self, store):
        with pytest.raises(ValidationError):
            store.add_node({"id": "", "type": "USER_QUERY"})
        with pytest.raises(ValidationError):
            store.add_node({"id": "x", "type": "NOT_A_TYPE"})
        assert len(store) == 0

    def test_duplicate_step_returns_existing(self, store, sink):
        first = store.add_node(make_step("a"))
        version = store.version
        second = store.add_node(make_step("a", title="other"))
        assert second is first
        assert store.version == version
        assert len(sink.of_type(GraphEventType.node_added)) == 1

    def test_single_root(self, store):
        store.add_node(make_step("a"))
        store.add_node(make_step("b"))
        assert store.root_node == "node-a"

    def test_unknown_parent_adds_unlinked(self, store):
        node = store.add_node(make_step("orphan"), parent_id="node-missing")
        assert node.level == 0
        assert node.parents == []
        assert store.get_edges() == []
        # a node with a requested parent never becomes root
        assert store.root_node is None

    def test_error_step_gets_error_edge(self, store):
        store.add_node(make_step("a"))
        store.add_node(make_step("e", StepType.error), parent_id="node-a")
        edges = store.get_edges()
        assert len(edges) == 1
        assert edges[0].type == EdgeType.error

    def test_children_and_parents_linked(self, store):
        store.add_node(make_step("a"))
        store.add_node(make_step("b"), parent_id="node-a")
        store.add_node(make_step("c"), parent_id="node-a")
        assert store.get_node("node-a").children == ["node-b", "node-c"]
        assert store.get_node("node-c").parents == ["node-a"]
        assert store.current_path == ["node-a", "node-b", "node-c"]

    def test_metadata_enrichment(self, store, clock):
        store.add_node(make_step("a"))
        clock.advance(250)
        node = store.add_node(
            make_step("b", sources=[Citation(url="https://a"), Citation(url="https://b")]),
            parent_id="node-a",
            metadata={"sources_count": 1, "phase": "search"},
        )
        assert store.get_node("node-a").metadata.processing_time == 0
        assert node.metadata.processing_time == 250
        assert node.metadata.sources_count == 2
        assert node.metadata.phase == "search"

    def test_event_carries_copy(self, store, sink):
        node = store.add_node(make_step("a"))
        event = sink.of_type(GraphEventType.node_added)[0]
        event.node.title = "changed"
        assert node.title == "A"

    def test_node_added_before_edge_added(self, store, sink):
        store.add_node(make_step("a"))
        store.add_node(make_step("b"), parent_id="node-a")
        types = [e.type for e in sink.events]
        assert types == [
            GraphEventType.node_added,
            GraphEventType.node_added,
            GraphEventType.edge_added,
        ]


class TestDuration:
    def test_duration_recorded_once(self, store, clock, sink):
        store.add_node(make_step("a"))
        clock.advance(120)
        assert store.update_node_duration("node-a") == 120
        version = store.version

        clock.advance(500)
        assert store.complete_node("node-a") == 120
        assert store.version == version
        assert len(sink.of_type(GraphEventType.node_completed)) == 1

        node = store.get_node("node-a")
        assert node.duration == 120
        assert node.metadata.processing_time == 120

    def test_unknown_node(self, store):
        assert store.update_node_duration("node-missing") is None
        assert store.version == 0


class TestMetadataUpdate:
    def test_shallow_merge(self, store, sink):
        store.add_node(make_step("a"), metadata={"phase": "plan", "confidence_score": 0.4})
        assert store.update_node_metadata("node-a", {"confidence_score": 0.9})
        metadata = store.get_node("node-a").metadata
        assert metadata.phase == "plan"
        assert metadata.confidence_score == 0.9
        assert len(sink.of_type(GraphEventType.node_updated)) == 1

    def test_accepts_metadata_model(self, store):
        store.add_node(make_step("a"))
        store.update_node_metadata("node-a", NodeMetadata(query_type="comparative"))
        assert store.get_node("node-a").metadata.query_type == "comparative"

    def test_invalid_patch_leaves_node_untouched(self, store):
        store.add_node(make_step("a"))
        version = store.version
        with pytest.raises(ValidationError):
            store.update_node_metadata("node-a", {"not_a_field": 1})
        assert store.version == version
        assert store.get_node("node-a").metadata.phase is None

    def test_unknown_node(self, store):
        assert store.update_node_metadata("node-missing", {"phase": "x"}) is False


class TestMarkError:
    def test_links_from_last_healthy_node(self, store):
        store.add_node(make_step("a"))
        store.add_node(make_step("b"), parent_id="node-a")
        store.add_node(make_step("c"), parent_id="node-b")
        store.mark_node_error("node-c", "boom")
        store.mark_node_error("node-b", "boom")

        error_edges = store.edges_by_type(EdgeType.error)
        assert [(e.source, e.target) for e in error_edges] == [
            ("node-b", "node-c"),
            ("node-a", "node-b"),
        ]
        assert store.get_node("node-b").metadata.error_message == "boom"

    def test_lone_node_gets_no_self_edge(self, store):
        store.add_node(make_step("a"))
        assert store.mark_node_error("node-a", "boom")
        assert store.get_edges() == []

    def test_unknown_node(self, store, sink):
        assert store.mark_node_error("node-missing", "boom") is False
        assert sink.events == []


class TestEdges:
    def test_unknown_endpoint_is_noop(self, store):
        store.add_node(make_step("a"))
        version = store.version
        assert store.add_edge("node-a", "node-missing", EdgeType.dependency) is None
        assert store.version == version

    def test_id_collisions_get_suffix(self, store):
        store.add_node(make_step("a"))
        store.add_node(make_step("b"))
        first = store.add_edge("node-a", "node-b", EdgeType.dependency)
        second = store.add_edge("node-a", "node-b", "dependency")
        third = store.add_edge("node-a", "node-b", EdgeType.dependency)
        assert first.id == "edge-node-a-node-b-dependency"
        assert second.id == "edge-node-a-node-b-dependency-0"
        assert third.id == "edge-node-a-node-b-dependency-1"

    def test_remove_edge(self, store, sink):
        store.add_node(make_step("a"))
        store.add_node(make_step("b"), parent_id="node-a")
        edge_id = store.get_edges()[0].id
        assert store.remove_edge(edge_id)
        assert store.remove_edge(edge_id) is False
        assert sink.of_type(GraphEventType.edge_removed)[0].edge_id == edge_id

    def test_update_edge_keeps_id(self, store):
        store.add_node(make_step("a"))
        store.add_node(make_step("b"), parent_id="node-a")
        edge_id = store.get_edges()[0].id
        version = store.version
        assert store.update_edge(edge_id, id="renamed", label="retry")
        edge = store.get_edge(edge_id)
        assert edge.label == "retry"
        assert store.get_edge("renamed") is None
        assert store.version == version + 1

    def test_queries(self, store):
        store.add_node(make_step("a"))
        store.add_node(make_step("b"), parent_id="node-a")
        store.add_node(make_step("c"), parent_id="node-b")
        assert [e.target for e in store.edges_by_source("node-a")] == ["node-b"]
        assert [e.source for e in store.edges_by_target("node-c")] == ["node-b"]
        assert len(store.connected_edges("node-b")) == 2
        assert store.are_nodes_connected("node-a", "node-b")
        assert not store.are_nodes_connected("node-b", "node-a")


class TestPaths:
    def test_find_all_paths(self, store):
        store.add_node(make_step("a"))
        store.add_node(make_step("b"), parent_id="node-a")
        store.add_node(make_step("c"), parent_id="node-a")
        store.add_node(make_step("d"), parent_id="node-b")
        assert store.find_all_paths() == [
            ["node-a", "node-b", "node-d"],
            ["node-a", "node-c"],
        ]

    def test_empty_graph(self, store):
        assert store.find_all_paths() == []


class TestVersioning:
    def test_every_mutation_bumps(self, store, clock):
        versions = [store.version]
        store.add_node(make_step("a"))
        versions.append(store.version)
        store.add_node(make_step("b"), parent_id="node-a")
        versions.append(store.version)
        clock.advance(10)
        store.update_node_duration("node-b")
        versions.append(store.version)
        store.update_node_metadata("node-b", {"phase": "done"})
        versions.append(store.version)
        store.mark_node_error("node-b", "x")
        versions.append(store.version)
        assert versions == sorted(set(versions))

    @pytest.mark.parametrize("mutations", [0, 1, 3])
    def test_reset_always_changes_version(self, store, sink, mutations):
        for i in range(mutations):
            store.add_node(make_step(f"s{i}"))
        before = store.version
        store.reset()
        assert store.version != before
        assert len(store) == 0
        assert store.root_node is None
        assert store.current_path == []
        assert sink.events[-1].type == GraphEventType.graph_reset

    def test_state_cleared_after_reset(self, store, clock):
        store.add_node(make_step("a"))
        store.reset()
        clock.advance(1000)
        node = store.add_node(make_step("b"))
        assert store.root_node == node.id
        assert store.start_time == clock.now
        assert node.metadata.processing_time == 0


class TestStateTransfer:
    def test_from_state_preserves_everything(self, store, clock):
        store.add_node(make_step("a"))
        clock.advance(5)
        store.add_node(make_step("b"), parent_id="node-a")
        state = store.to_state()

        restored = ResearchGraphStore.from_state(state, clock=clock)
        assert restored.version == store.version
        assert restored.root_node == store.root_node
        assert restored.current_path == store.current_path
        assert [n.id for n in restored.get_nodes()] == ["node-a", "node-b"]
        assert restored.get_node_timestamp("node-b") == clock.now

    def test_state_is_a_copy(self, store):
        store.add_node(make_step("a"))
        state = store.to_state()
        state.nodes[0][1].title = "mutated"
        assert store.get_node("node-a").title == "A"
