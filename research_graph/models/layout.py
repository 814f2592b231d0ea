"""Data model for layout input and positioned output.

Layout consumes only the simplified visualization view, never store nodes.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from research_graph.models.graph import EdgeType
from research_graph.models.research_step import StepType


class LayoutNodeInput(BaseModel):
    """a node as the layout sees it."""

    id: str
    title: str = ""
    type: StepType
    level: int = 0


class LayoutEdgeInput(BaseModel):
    """an edge as the layout sees it."""

    source: str
    target: str
    type: EdgeType = EdgeType.sequential


class Point(BaseModel):
    x: float
    y: float


class PositionedNode(LayoutNodeInput):
    """a node with its box placed on the canvas."""

    x: float
    y: float
    width: float
    height: float


class RoutedEdge(LayoutEdgeInput):
    """an edge with its path; empty when an endpoint is missing."""

    points: list[Point] = Field(default_factory=list)


class GraphLayout(BaseModel):
    """the positioned graph."""

    nodes: list[PositionedNode]
    edges: list[RoutedEdge]


class LayoutRequest(BaseModel):
    """Layout worker request, keyed by a caller-supplied id."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    request_id: str
    nodes: list[LayoutNodeInput]
    edges: list[LayoutEdgeInput]


class LayoutResponse(BaseModel):
    """Layout worker response. On failure `error` is set and both lists are empty."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    request_id: str
    positioned_nodes: list[PositionedNode] = Field(default_factory=list)
    routed_edges: list[RoutedEdge] = Field(default_factory=list)
    error: str | None = None
