"""Data model for the live research graph."""

from enum import Enum

from pydantic import BaseModel, Field

from research_graph.models.research_step import NodeMetadata, ResearchStep, StepType


class EdgeType(str, Enum):
    """Relationship between two research steps."""

    sequential = "sequential"
    dependency = "dependency"
    error = "error"


class GraphNode(BaseModel):
    """a research step materialized in the graph."""

    id: str
    step_id: str
    type: StepType
    title: str = ""
    timestamp: str  # ISO8601 UTC creation time
    duration: int | None = None  # ms, set once on completion
    children: list[str] = Field(default_factory=list)
    parents: list[str] = Field(default_factory=list)  # single parent today
    level: int = 0
    metadata: NodeMetadata = Field(default_factory=NodeMetadata)
    data: ResearchStep | None = None


class GraphEdge(BaseModel):
    """a directed edge between two nodes."""

    id: str
    source: str
    target: str
    type: EdgeType
    label: str | None = None


class GraphState(BaseModel):
    """Full internal state of a store, as persisted.

    Node and edge maps are stored as ordered entry lists so insertion
    order survives the round trip.
    """

    nodes: list[tuple[str, GraphNode]]
    edges: list[tuple[str, GraphEdge]]
    root_node: str | None = None
    current_path: list[str] = Field(default_factory=list)
    start_time: int | None = None
    last_node_timestamp: int | None = None
    node_timestamps: dict[str, int] = Field(default_factory=dict)
    graph_version: int = 0
