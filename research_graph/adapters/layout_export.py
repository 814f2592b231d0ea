"""Positioned JSON export of a computed layout."""

from research_graph.analysis.statistics import GraphStatistics
from research_graph.models.layout import GraphLayout
from research_graph.utils.identifiers import utc_timestamp

EXPORT_FORMAT_VERSION = "1.0.0"
EXPORTED_BY = "Research Graph Analysis Tool"


def export_layout_json(layout: GraphLayout, statistics: GraphStatistics) -> dict:
    """Build a JSON-serializable export of a layout and the session statistics."""
    return {
        "version": EXPORT_FORMAT_VERSION,
        "timestamp": utc_timestamp(),
        "metadata": {
            "totalNodes": len(layout.nodes),
            "totalEdges": len(layout.edges),
            "exportedBy": EXPORTED_BY,
        },
        "nodes": [
            {
                "id": node.id,
                "title": node.title,
                "type": node.type.value,
                "level": node.level,
                "position": {"x": node.x, "y": node.y},
                "dimensions": {"width": node.width, "height": node.height},
            }
            for node in layout.nodes
        ],
        "edges": [
            {
                # positional ids: layout edges don't carry store edge ids
                "id": f"edge-{index}",
                "source": edge.source,
                "target": edge.target,
                "type": edge.type.value,
                "points": [{"x": p.x, "y": p.y} for p in edge.points],
            }
            for index, edge in enumerate(layout.edges)
        ],
        "statistics": statistics.to_dict(),
    }
