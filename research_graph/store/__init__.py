"""Graph store and its event bus."""

from research_graph.store.events import EventBus, GraphEventListener
from research_graph.store.graph_store import (
    DEFAULT_MAX_NODES,
    ERROR_EDGE_LABEL,
    ResearchGraphStore,
)

__all__ = [
    "DEFAULT_MAX_NODES",
    "ERROR_EDGE_LABEL",
    "EventBus",
    "GraphEventListener",
    "ResearchGraphStore",
]
