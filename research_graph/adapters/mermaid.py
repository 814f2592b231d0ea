"""Mermaid flow-diagram text for a research graph."""

import re
from dataclasses import dataclass, field

from research_graph.adapters.visualization import VisualizationGraph, VisualizationNode
from research_graph.models.graph import EdgeType, GraphEdge
from research_graph.models.research_step import StepType
from research_graph.utils.identifiers import utc_timestamp

MAX_TITLE_ID_CHARS = 20

DEFAULT_CHUNK_SIZE = 25

# node kind -> (open, close) shape delimiters
_SHAPES = {
    StepType.error: ("((", "))"),
    StepType.final_answer: ("[[", "]]"),
}
_DEFAULT_SHAPE = ("[", "]")

_CLASS_DEFS = (
    "    classDef error fill:#fee,stroke:#f66,stroke-width:2px\n"
    "    classDef success fill:#efe,stroke:#6f6,stroke-width:2px\n"
    "    classDef processing fill:#eef,stroke:#66f,stroke-width:2px\n"
)


def _sanitize(value: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", value)


def diagram_ids(nodes: list[VisualizationNode]) -> dict[str, str]:
    """Map node ids to Mermaid-safe identifiers, unique within the diagram.

    Identifiers are the first characters of the title plus the tail of the
    node id; a numeric suffix resolves any remaining collision.
    """
    mapping: dict[str, str] = {}
    used: set[str] = set()
    for index, node in enumerate(nodes):
        title_part = _sanitize(node.label)[:MAX_TITLE_ID_CHARS] or "node"
        tail = _sanitize(node.id.split("-")[-1]) or str(index)
        candidate = f"{title_part}_{tail}"

        unique = candidate
        counter = 1
        while unique in used:
            unique = f"{candidate}_{counter}"
            counter += 1

        used.add(unique)
        mapping[node.id] = unique
    return mapping


def _one_line(text: str) -> str:
    return re.sub(r"\s*[\r\n]+\s*", " ", text)


def _node_line(node: VisualizationNode, diagram_id: str) -> str:
    open_, close = _SHAPES.get(node.type, _DEFAULT_SHAPE)
    label = _one_line(node.label).replace('"', "'")
    return f'    {diagram_id}{open_}"{label}"{close}\n'


def _edge_line(edge: GraphEdge, ids: dict[str, str]) -> str:
    source = ids.get(edge.source, _sanitize(edge.source))
    target = ids.get(edge.target, _sanitize(edge.target))
    arrow = "-.->" if edge.type == EdgeType.error else "-->"
    label = f"|{_one_line(edge.label).replace('|', '/')}|" if edge.label else ""
    return f"    {source} {arrow}{label} {target}\n"


def _class_lines(nodes: list[VisualizationNode], ids: dict[str, str]) -> str:
    lines = ""
    errors = [ids[n.id] for n in nodes if n.type == StepType.error]
    finals = [ids[n.id] for n in nodes if n.type == StepType.final_answer]
    if errors:
        lines += f"    class {','.join(errors)} error\n"
    if finals:
        lines += f"    class {','.join(finals)} success\n"
    return lines


def generate_mermaid_diagram(graph: VisualizationGraph) -> str:
    """Render the whole graph as one `graph TD` diagram."""
    ids = diagram_ids(graph.nodes)

    text = "graph TD\n"
    for node in graph.nodes:
        text += _node_line(node, ids[node.id])
    for edge in graph.edges:
        text += _edge_line(edge, ids)

    text += "\n" + _CLASS_DEFS
    text += _class_lines(graph.nodes, ids)
    return text


@dataclass
class MermaidExport:
    """A large graph split into several diagrams plus a markdown index."""

    index: str
    parts: dict[str, str] = field(default_factory=dict)  # filename -> diagram


def generate_mermaid_parts(
    graph: VisualizationGraph,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    base_name: str = "research-graph",
) -> MermaidExport:
    """Split a graph into diagrams of at most `chunk_size` nodes each.

    Nodes keep insertion order. Each part only draws edges whose ends both
    fall inside it; identifiers are computed once over the whole graph so a
    node has the same id in every part.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")

    ids = diagram_ids(graph.nodes)
    chunks = [graph.nodes[i:i + chunk_size] for i in range(0, len(graph.nodes), chunk_size)]

    parts: dict[str, str] = {}
    for number, chunk in enumerate(chunks, start=1):
        members = {node.id for node in chunk}

        text = "graph TD\n"
        text += f'    subgraph part_{number}["Part {number}"]\n'
        for node in chunk:
            text += "    " + _node_line(node, ids[node.id])
        text += "    end\n"
        for edge in graph.edges:
            if edge.source in members and edge.target in members:
                text += _edge_line(edge, ids)
        text += "\n" + _CLASS_DEFS
        text += _class_lines(chunk, ids)

        parts[f"{base_name}-part-{number}.mmd"] = text

    index = f"# Research Graph Export ({len(parts)} parts)\n\n"
    index += f"Total nodes: {len(graph.nodes)}\n"
    index += f"Generated: {utc_timestamp()}\n\n"
    index += "## Files:\n"
    for number, filename in enumerate(parts, start=1):
        index += f"- [Part {number}]({filename})\n"

    return MermaidExport(index=index, parts=parts)
