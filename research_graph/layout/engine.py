"""Deterministic hierarchical layout.

Nodes are bucketed by level, each level is centered on x = 0 with spacing
that tightens as the level gets crowded, and edges run from the source's
bottom-center to the target's top-center. Edges that skip levels get a
4-point curve so they bend around the rows in between.
"""

from dataclasses import dataclass
from typing import Iterable, Sequence

from research_graph.models.layout import (
    GraphLayout,
    LayoutEdgeInput,
    LayoutNodeInput,
    Point,
    PositionedNode,
    RoutedEdge,
)

NodeSignature = tuple[str, int, str, str]
EdgeSignature = tuple[str, str, str]
LayoutKey = tuple[tuple[NodeSignature, ...], tuple[EdgeSignature, ...]]


@dataclass(frozen=True)
class LayoutConfig:
    """Geometry constants, in canvas units."""

    node_width: float = 200
    node_height: float = 60
    level_height: float = 120
    base_spacing: float = 250
    min_spacing: float = 180
    dense_level_threshold: int = 10
    spacing_shrink_per_node: float = 7
    curve_offset_per_level: float = 30


def node_signature(node: LayoutNodeInput) -> NodeSignature:
    return (node.id, node.level, node.type.value, node.title)


def edge_signature(edge: LayoutEdgeInput) -> EdgeSignature:
    return (edge.source, edge.target, edge.type.value)


def layout_key(
    nodes: Iterable[LayoutNodeInput],
    edges: Iterable[LayoutEdgeInput],
) -> LayoutKey:
    """Order-independent memoization key for a layout request."""
    return (
        tuple(sorted(node_signature(n) for n in nodes)),
        tuple(sorted(edge_signature(e) for e in edges)),
    )


class LayoutEngine:
    """Pure layout transform. Holds configuration only, no state."""

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()

    def spacing_for(self, count: int) -> float:
        """Horizontal spacing for a level holding `count` nodes."""
        cfg = self.config
        if count <= cfg.dense_level_threshold:
            return cfg.base_spacing
        shrunk = cfg.base_spacing - (count - cfg.dense_level_threshold) * cfg.spacing_shrink_per_node
        return max(cfg.min_spacing, shrunk)

    def position_nodes(self, nodes: Sequence[LayoutNodeInput]) -> list[PositionedNode]:
        cfg = self.config

        levels: dict[int, dict[str, LayoutNodeInput]] = {}
        for node in nodes:
            levels.setdefault(node.level, {})[node.id] = node

        positioned: list[PositionedNode] = []
        for level in sorted(levels):
            # canonical order within a level so output depends only on signatures
            level_nodes = [levels[level][node_id] for node_id in sorted(levels[level])]
            spacing = self.spacing_for(len(level_nodes))
            start = -(len(level_nodes) - 1) * spacing / 2

            for index, node in enumerate(level_nodes):
                center_x = start + index * spacing
                positioned.append(PositionedNode(
                    id=node.id,
                    title=node.title,
                    type=node.type,
                    level=level,
                    x=center_x - cfg.node_width / 2,
                    y=level * cfg.level_height,
                    width=cfg.node_width,
                    height=cfg.node_height,
                ))
        return positioned

    def route_edge(
        self,
        edge: LayoutEdgeInput,
        source: PositionedNode | None,
        target: PositionedNode | None,
    ) -> RoutedEdge:
        if source is None or target is None:
            return RoutedEdge(source=edge.source, target=edge.target, type=edge.type, points=[])

        start = Point(x=source.x + source.width / 2, y=source.y + source.height)
        end = Point(x=target.x + target.width / 2, y=target.y)

        gap = abs(target.level - source.level)
        if gap > 1:
            offset = gap * self.config.curve_offset_per_level
            mid_y = (start.y + end.y) / 2
            points = [
                start,
                Point(x=start.x, y=mid_y - offset),
                Point(x=end.x, y=mid_y + offset),
                end,
            ]
        else:
            points = [start, end]

        return RoutedEdge(source=edge.source, target=edge.target, type=edge.type, points=points)

    def layout_graph(
        self,
        nodes: Sequence[LayoutNodeInput],
        edges: Sequence[LayoutEdgeInput],
    ) -> GraphLayout:
        """Position nodes and route edges. Always computes; see LayoutCache for memoization."""
        positioned = self.position_nodes(nodes)
        by_id = {node.id: node for node in positioned}

        routed = [
            self.route_edge(edge, by_id.get(edge.source), by_id.get(edge.target))
            for edge in sorted(edges, key=edge_signature)
        ]
        return GraphLayout(nodes=positioned, edges=routed)
