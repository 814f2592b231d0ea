"""Bounded-memory retention for long research sessions.

The policy keeps the most recent nodes plus the primary narrative thread
(root, then each node's first child) no matter how old it is.
"""

from typing import Iterable, Mapping

from research_graph.models.graph import GraphEdge, GraphNode
from research_graph.utils.identifiers import iso_to_ms


def critical_path(nodes: Mapping[str, GraphNode], root_id: str | None) -> list[str]:
    """Follow first children from the root until the chain ends."""
    path: list[str] = []
    seen: set[str] = set()
    current = root_id
    while current and current in nodes and current not in seen:
        path.append(current)
        seen.add(current)
        children = nodes[current].children
        current = children[0] if children else None
    return path


def select_nodes_to_keep(
    nodes: Mapping[str, GraphNode],
    node_timestamps: Mapping[str, int],
    root_id: str | None,
    max_nodes: int,
) -> set[str]:
    """Pick the node ids that survive an archival pass.

    Args:
        nodes: live nodes, in insertion order.
        node_timestamps: creation time in epoch ms per node id.
        root_id: graph root, start of the critical path.
        max_nodes: how many of the newest nodes to retain.

    Returns:
        The newest `max_nodes` ids plus every id on the critical path.
        When the graph is within bounds every id is kept.
    """
    if len(nodes) <= max_nodes:
        return set(nodes)

    ordered = list(nodes)
    position = {node_id: index for index, node_id in enumerate(ordered)}

    def age_key(node_id: str) -> tuple[int, int]:
        ts = node_timestamps.get(node_id)
        if ts is None:
            ts = iso_to_ms(nodes[node_id].timestamp)
        # later insertion wins ties within the same millisecond
        return (ts, position[node_id])

    newest_first = sorted(ordered, key=age_key, reverse=True)
    keep = set(newest_first[:max(max_nodes, 0)])
    keep.update(critical_path(nodes, root_id))
    return keep


def dangling_edges(edges: Iterable[GraphEdge], live_ids: set[str]) -> list[str]:
    """Ids of edges with a source or target outside `live_ids`."""
    return [
        edge.id
        for edge in edges
        if edge.source not in live_ids or edge.target not in live_ids
    ]
