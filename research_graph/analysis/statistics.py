"""Live statistics over the graph's node set.

Everything here is a pure read: it never mutates nodes and can be called
on every notification.
"""

from dataclasses import dataclass
from typing import Iterable

from research_graph.models.graph import GraphNode
from research_graph.models.research_step import StepType


@dataclass
class GraphStatistics:
    """Summary of a research session's graph."""

    total_nodes: int = 0
    total_duration: int = 0  # ms since the first node was created
    average_step_duration: float = 0.0
    error_count: int = 0
    success_rate: float = 1.0
    sources_collected: int = 0
    unique_citations: int = 0

    def to_dict(self) -> dict:
        """camelCase view used by rendering collaborators."""
        return {
            "totalNodes": self.total_nodes,
            "totalDuration": self.total_duration,
            "averageStepDuration": self.average_step_duration,
            "errorCount": self.error_count,
            "successRate": self.success_rate,
            "sourcesCollected": self.sources_collected,
            "uniqueCitations": self.unique_citations,
        }


def _node_sources_count(node: GraphNode) -> int:
    """Larger of the reported count and the attached list, so nothing is counted twice."""
    reported = node.metadata.sources_count or 0
    attached = len(node.data.sources) if node.data else 0
    return max(reported, attached)


def _citation_keys(node: GraphNode) -> set[str]:
    keys: set[str] = set()

    for section in node.metadata.sections or []:
        for source in section.sources:
            key = source.dedupe_key()
            if key:
                keys.add(key)

    if node.data:
        for source in node.data.sources:
            key = source.dedupe_key()
            if key:
                keys.add(key)

    return keys


def compute_statistics(
    nodes: Iterable[GraphNode],
    start_time: int | None,
    now: int,
) -> GraphStatistics:
    """Compute statistics for the live node set.

    Args:
        nodes: live nodes of the graph.
        start_time: epoch ms of the first node, or None for an empty session.
        now: current epoch ms.

    Returns:
        GraphStatistics. An empty graph reports a success rate of 1.0.
    """
    nodes = list(nodes)
    if not nodes:
        return GraphStatistics()

    total = len(nodes)
    total_duration = now - start_time if start_time is not None else 0

    completed = [n.duration for n in nodes if n.duration and n.duration > 0]
    average = sum(completed) / len(completed) if completed else 0.0

    error_count = sum(1 for n in nodes if n.type == StepType.error)

    citations: set[str] = set()
    for node in nodes:
        citations |= _citation_keys(node)

    return GraphStatistics(
        total_nodes=total,
        total_duration=total_duration,
        average_step_duration=average,
        error_count=error_count,
        success_rate=(total - error_count) / total,
        sources_collected=sum(_node_sources_count(n) for n in nodes),
        unique_citations=len(citations),
    )
