"""
Graph event models emitted on every structural or content mutation.

Consumers (snapshot refreshers, sinks, the HTTP layer) subscribe to these
instead of diffing the graph.
"""

from enum import Enum
from typing import Self

from pydantic import BaseModel, model_validator

from research_graph.models.graph import GraphEdge, GraphNode


class GraphEventType(str, Enum):
    """Types of events emitted by the graph store."""

    node_added = "node-added"
    node_updated = "node-updated"
    node_completed = "node-completed"
    node_error = "node-error"
    node_removed = "node-removed"
    edge_added = "edge-added"
    edge_removed = "edge-removed"
    graph_reset = "graph-reset"
    batch_update = "batch-update"


# event types that must name the node they concern
NODE_EVENT_TYPES = {
    GraphEventType.node_added,
    GraphEventType.node_updated,
    GraphEventType.node_completed,
    GraphEventType.node_error,
    GraphEventType.node_removed,
}

EDGE_EVENT_TYPES = {GraphEventType.edge_added, GraphEventType.edge_removed}


class GraphEvent(BaseModel):
    """A single notification about a graph change."""

    model_config = {"extra": "forbid"}

    type: GraphEventType

    node_id: str | None = None
    node: GraphNode | None = None
    duration: int | None = None
    error: str | None = None

    edge_id: str | None = None
    edge: GraphEdge | None = None

    node_ids: list[str] | None = None

    @model_validator(mode="after")
    def validate_payload_invariants(self) -> Self:
        """Validate required fields based on event type."""
        event_type = self.type

        if event_type in NODE_EVENT_TYPES and not self.node_id:
            raise ValueError(f"{event_type.value} event must carry 'node_id'")
        if event_type in EDGE_EVENT_TYPES and not self.edge_id:
            raise ValueError(f"{event_type.value} event must carry 'edge_id'")

        if event_type == GraphEventType.node_added and self.node is None:
            raise ValueError("node-added event must carry 'node'")
        elif event_type == GraphEventType.node_completed and self.duration is None:
            raise ValueError("node-completed event must carry 'duration'")
        elif event_type == GraphEventType.node_error and self.error is None:
            raise ValueError("node-error event must carry 'error'")
        elif event_type == GraphEventType.edge_added and self.edge is None:
            raise ValueError("edge-added event must carry 'edge'")
        elif event_type == GraphEventType.batch_update and self.node_ids is None:
            raise ValueError("batch-update event must carry 'node_ids'")

        return self

    # constructors used by the store

    @classmethod
    def node_added(cls, node: GraphNode) -> "GraphEvent":
        return cls(type=GraphEventType.node_added, node_id=node.id, node=node)

    @classmethod
    def node_updated(cls, node: GraphNode) -> "GraphEvent":
        return cls(type=GraphEventType.node_updated, node_id=node.id, node=node)

    @classmethod
    def node_completed(cls, node_id: str, duration: int) -> "GraphEvent":
        return cls(type=GraphEventType.node_completed, node_id=node_id, duration=duration)

    @classmethod
    def node_error(cls, node_id: str, error: str) -> "GraphEvent":
        return cls(type=GraphEventType.node_error, node_id=node_id, error=error)

    @classmethod
    def node_removed(cls, node_id: str) -> "GraphEvent":
        return cls(type=GraphEventType.node_removed, node_id=node_id)

    @classmethod
    def edge_added(cls, edge: GraphEdge) -> "GraphEvent":
        return cls(type=GraphEventType.edge_added, edge_id=edge.id, edge=edge)

    @classmethod
    def edge_removed(cls, edge_id: str) -> "GraphEvent":
        return cls(type=GraphEventType.edge_removed, edge_id=edge_id)

    @classmethod
    def graph_reset(cls) -> "GraphEvent":
        return cls(type=GraphEventType.graph_reset)

    @classmethod
    def batch_update(cls, node_ids: list[str]) -> "GraphEvent":
        return cls(type=GraphEventType.batch_update, node_ids=node_ids)
