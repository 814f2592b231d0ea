"""Simplified node/edge view for rendering and layout.

This view is decoupled from store internals: it carries copies, so a
consumer holding on to it never sees later in-place store mutations.
"""

from pydantic import BaseModel

from research_graph.models.graph import GraphEdge
from research_graph.models.layout import LayoutEdgeInput, LayoutNodeInput
from research_graph.models.research_step import NodeMetadata, StepType
from research_graph.store.graph_store import ResearchGraphStore


class VisualizationNode(BaseModel):
    id: str
    label: str
    type: StepType
    metadata: NodeMetadata
    level: int = 0


class VisualizationGraph(BaseModel):
    """What rendering collaborators and the layout engine consume."""

    nodes: list[VisualizationNode]
    edges: list[GraphEdge]

    def layout_nodes(self) -> list[LayoutNodeInput]:
        return [
            LayoutNodeInput(id=n.id, title=n.label, type=n.type, level=n.level)
            for n in self.nodes
        ]

    def layout_edges(self) -> list[LayoutEdgeInput]:
        return [
            LayoutEdgeInput(source=e.source, target=e.target, type=e.type)
            for e in self.edges
        ]


def export_for_visualization(store: ResearchGraphStore) -> VisualizationGraph:
    """Snapshot the store as a visualization view."""
    return VisualizationGraph(
        nodes=[
            VisualizationNode(
                id=node.id,
                label=node.title,
                type=node.type,
                metadata=node.metadata.model_copy(deep=True),
                level=node.level,
            )
            for node in store.get_nodes()
        ],
        edges=[edge.model_copy() for edge in store.get_edges()],
    )
