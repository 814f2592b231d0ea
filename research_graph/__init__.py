"""Research Graph - event-sourced graph, statistics and layout for research sessions."""

from research_graph.models.graph import EdgeType, GraphEdge, GraphNode
from research_graph.models.graph_event import GraphEvent, GraphEventType
from research_graph.models.research_step import (
    Citation,
    NodeMetadata,
    ResearchStep,
    StepType,
)
from research_graph.store.graph_store import ResearchGraphStore
from research_graph.layout.cache import LayoutCache
from research_graph.layout.engine import LayoutEngine
from research_graph.session import GraphSnapshot, ResearchSession

__all__ = [
    # Steps
    "Citation",
    "NodeMetadata",
    "ResearchStep",
    "StepType",
    # Graph
    "EdgeType",
    "GraphEdge",
    "GraphNode",
    # Events
    "GraphEvent",
    "GraphEventType",
    # High-level APIs
    "ResearchGraphStore",
    "LayoutEngine",
    "LayoutCache",
    "ResearchSession",
    "GraphSnapshot",
]
