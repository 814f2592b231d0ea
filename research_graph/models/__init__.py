"""Core data models for the research graph."""

from research_graph.models.graph import (
    EdgeType,
    GraphEdge,
    GraphNode,
    GraphState,
)
from research_graph.models.graph_event import (
    GraphEvent,
    GraphEventType,
)
from research_graph.models.research_step import (
    Citation,
    EffortType,
    NodeMetadata,
    ParadigmProbabilities,
    ResearchSection,
    ResearchStep,
    StepType,
)

__all__ = [
    # Steps
    "Citation",
    "EffortType",
    "NodeMetadata",
    "ParadigmProbabilities",
    "ResearchSection",
    "ResearchStep",
    "StepType",
    # Graph
    "EdgeType",
    "GraphEdge",
    "GraphNode",
    "GraphState",
    # Events
    "GraphEvent",
    "GraphEventType",
]
