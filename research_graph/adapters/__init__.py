"""Adapters between the graph store and its consumers."""

from research_graph.adapters.layout_export import export_layout_json
from research_graph.adapters.mermaid import (
    MermaidExport,
    generate_mermaid_diagram,
    generate_mermaid_parts,
)
from research_graph.adapters.serialization import (
    GraphDeserializationError,
    deserialize,
    serialize,
)
from research_graph.adapters.sinks import EventSink, FileSink, ListSink
from research_graph.adapters.visualization import (
    VisualizationGraph,
    VisualizationNode,
    export_for_visualization,
)

__all__ = [
    "EventSink",
    "FileSink",
    "ListSink",
    "GraphDeserializationError",
    "deserialize",
    "serialize",
    "MermaidExport",
    "generate_mermaid_diagram",
    "generate_mermaid_parts",
    "VisualizationGraph",
    "VisualizationNode",
    "export_for_visualization",
    "export_layout_json",
]
