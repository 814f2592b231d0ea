"""Read-side analysis over the research graph."""

from research_graph.analysis.archival import (
    critical_path,
    dangling_edges,
    select_nodes_to_keep,
)
from research_graph.analysis.statistics import (
    GraphStatistics,
    compute_statistics,
)

__all__ = [
    # statistics
    "GraphStatistics",
    "compute_statistics",
    # archival
    "critical_path",
    "dangling_edges",
    "select_nodes_to_keep",
]
