"""JSON round-trip of a store's full internal state."""

from typing import Callable

from pydantic import ValidationError

from research_graph.models.graph import GraphState
from research_graph.store.events import EventBus
from research_graph.store.graph_store import ResearchGraphStore


class GraphDeserializationError(ValueError):
    """Stored graph data could not be read back.

    Usually a version or compatibility problem; callers should discard the
    blob and start a fresh session.
    """


def serialize(store: ResearchGraphStore) -> str:
    """Serialize the store to a JSON string."""
    return store.to_state().model_dump_json()


def deserialize(
    data: str | bytes,
    clock: Callable[[], int] | None = None,
    bus: EventBus | None = None,
) -> ResearchGraphStore:
    """Rebuild a store from serialize() output.

    Raises:
        GraphDeserializationError: if `data` is not valid serialized state.
    """
    try:
        state = GraphState.model_validate_json(data)
    except ValidationError as exc:
        raise GraphDeserializationError(f"malformed graph data: {exc}") from exc

    _check_references(state)
    return ResearchGraphStore.from_state(state, clock=clock, bus=bus)


def _check_references(state: GraphState) -> None:
    node_ids = {node_id for node_id, _ in state.nodes}

    for node_id, node in state.nodes:
        if node_id != node.id:
            raise GraphDeserializationError(f"node entry key {node_id!r} does not match node id {node.id!r}")
    for edge_id, edge in state.edges:
        if edge_id != edge.id:
            raise GraphDeserializationError(f"edge entry key {edge_id!r} does not match edge id {edge.id!r}")

    if state.root_node is not None and state.root_node not in node_ids:
        raise GraphDeserializationError(f"root node {state.root_node!r} is not in the graph")

    for _, edge in state.edges:
        for endpoint in (edge.source, edge.target):
            if endpoint not in node_ids:
                raise GraphDeserializationError(f"edge {edge.id!r} references unknown node {endpoint!r}")

    for node_id in state.current_path:
        if node_id not in node_ids:
            raise GraphDeserializationError(f"current path references unknown node {node_id!r}")
    for node_id in state.node_timestamps:
        if node_id not in node_ids:
            raise GraphDeserializationError(f"timestamp recorded for unknown node {node_id!r}")
