"""Event-sourced graph of a research session.

The store owns nodes, edges, the root, the insertion-ordered current path,
per-node creation times and a version counter. Every structural or content
mutation bumps the version and emits a GraphEvent.

Mutations that reference an unknown node or edge are silent no-ops: steps
arrive asynchronously and out of order, and a late reference must not take
the session down.
"""

import logging
from typing import Any, Callable

from research_graph.analysis.archival import dangling_edges, select_nodes_to_keep
from research_graph.analysis.statistics import GraphStatistics, compute_statistics
from research_graph.models.graph import EdgeType, GraphEdge, GraphNode, GraphState
from research_graph.models.graph_event import GraphEvent
from research_graph.models.research_step import NodeMetadata, ResearchStep, StepType
from research_graph.store.events import EventBus, GraphEventListener
from research_graph.utils.identifiers import (
    edge_base_id,
    ms_to_iso,
    node_id_for_step,
    now_ms,
)

logger = logging.getLogger(__name__)

ERROR_EDGE_LABEL = "Error occurred"

DEFAULT_MAX_NODES = 100


class ResearchGraphStore:
    """Directed graph of research steps for one session.

    Not thread-safe. One session owns one store; concurrent sessions use
    separate instances.

    Usage:
        store = ResearchGraphStore()
        unsubscribe = store.subscribe(print)
        root = store.add_node(ResearchStep(id="q", type=StepType.user_query))
        child = store.add_node(step, parent_id=root.id)
        store.update_node_duration(child.id)
    """

    def __init__(
        self,
        clock: Callable[[], int] | None = None,
        bus: EventBus | None = None,
    ) -> None:
        """Create an empty store.

        Args:
            clock: returns the current time in epoch milliseconds.
            bus: event bus to publish on. A private one is created if omitted.
        """
        self._clock = clock or now_ms
        self._bus = bus if bus is not None else EventBus()

        self._nodes: dict[str, GraphNode] = {}
        self._edges: dict[str, GraphEdge] = {}
        self._root: str | None = None
        self._current_path: list[str] = []

        self._start_time: int | None = None
        self._last_node_timestamp: int | None = None
        self._node_timestamps: dict[str, int] = {}
        self._version = 0

    # events

    def subscribe(self, listener: GraphEventListener) -> Callable[[], None]:
        """Subscribe to graph events. Returns an unsubscribe callable."""
        return self._bus.subscribe(listener)

    def start_batch(self) -> None:
        self._bus.start_batch()

    def end_batch(self) -> None:
        self._bus.end_batch()

    @property
    def bus(self) -> EventBus:
        return self._bus

    # version

    @property
    def version(self) -> int:
        """Monotonic mutation counter; compare to detect staleness."""
        return self._version

    def _bump(self) -> None:
        self._version += 1

    # read access

    @property
    def root_node(self) -> str | None:
        return self._root

    @property
    def current_path(self) -> list[str]:
        return list(self._current_path)

    @property
    def start_time(self) -> int | None:
        return self._start_time

    @property
    def clock(self) -> Callable[[], int]:
        return self._clock

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> GraphNode | None:
        return self._nodes.get(node_id)

    def get_nodes(self) -> list[GraphNode]:
        """All live nodes in insertion order."""
        return list(self._nodes.values())

    def get_edge(self, edge_id: str) -> GraphEdge | None:
        return self._edges.get(edge_id)

    def get_edges(self) -> list[GraphEdge]:
        return list(self._edges.values())

    def edges_by_source(self, source_id: str) -> list[GraphEdge]:
        return [e for e in self._edges.values() if e.source == source_id]

    def edges_by_target(self, target_id: str) -> list[GraphEdge]:
        return [e for e in self._edges.values() if e.target == target_id]

    def edges_by_type(self, edge_type: EdgeType | str) -> list[GraphEdge]:
        edge_type = EdgeType(edge_type)
        return [e for e in self._edges.values() if e.type == edge_type]

    def connected_edges(self, node_id: str) -> list[GraphEdge]:
        """Incoming and outgoing edges of a node."""
        return [
            e for e in self._edges.values()
            if e.source == node_id or e.target == node_id
        ]

    def are_nodes_connected(self, source_id: str, target_id: str) -> bool:
        return any(
            e.source == source_id and e.target == target_id
            for e in self._edges.values()
        )

    def node_id_for_step(self, step_id: str) -> str:
        return node_id_for_step(step_id)

    def get_node_timestamp(self, node_id: str) -> int | None:
        """Creation time of a node in epoch ms."""
        return self._node_timestamps.get(node_id)

    def find_all_paths(self) -> list[list[str]]:
        """Every root-to-leaf path following child links."""
        paths: list[list[str]] = []
        if not self._root or self._root not in self._nodes:
            return paths

        # iterative DFS; sessions can be deep enough to hit the recursion limit
        stack: list[tuple[str, list[str]]] = [(self._root, [self._root])]
        while stack:
            node_id, path = stack.pop()
            children = [c for c in self._nodes[node_id].children if c in self._nodes and c not in path]
            if not children:
                paths.append(path)
                continue
            for child in reversed(children):
                stack.append((child, path + [child]))
        return paths

    # mutations

    def add_node(
        self,
        step: ResearchStep | dict,
        parent_id: str | None = None,
        metadata: NodeMetadata | dict | None = None,
    ) -> GraphNode:
        """Add a research step to the graph.

        The node id is derived from the step id, so re-adding a step returns
        the existing node instead of creating a duplicate. An unknown
        `parent_id` still adds the node, unlinked, at level 0.

        Raises:
            pydantic.ValidationError: if `step` or `metadata` is malformed.
        """
        if not isinstance(step, ResearchStep):
            step = ResearchStep.model_validate(step)
        if metadata is not None and not isinstance(metadata, NodeMetadata):
            metadata = NodeMetadata.model_validate(metadata)

        node_id = node_id_for_step(step.id)
        existing = self._nodes.get(node_id)
        if existing is not None:
            logger.debug("step %s already in graph, returning existing node", step.id)
            return existing

        timestamp = self._clock()
        if self._start_time is None:
            self._start_time = timestamp

        base = metadata or step.metadata or NodeMetadata()
        enriched = base.model_copy(
            deep=True,
            update={
                "sources_count": max(base.sources_count, len(step.sources)),
                "processing_time": (
                    timestamp - self._last_node_timestamp
                    if self._last_node_timestamp is not None
                    else 0
                ),
            },
        )

        parent = self._nodes.get(parent_id) if parent_id else None
        if parent_id and parent is None:
            logger.debug("parent %s not found for %s, adding unlinked", parent_id, node_id)

        node = GraphNode(
            id=node_id,
            step_id=step.id,
            type=step.type,
            title=step.title or "",
            timestamp=ms_to_iso(timestamp),
            parents=[parent.id] if parent else [],
            level=parent.level + 1 if parent else 0,
            metadata=enriched,
            data=step,
        )

        self._nodes[node_id] = node
        self._current_path.append(node_id)
        self._node_timestamps[node_id] = timestamp
        self._last_node_timestamp = timestamp
        if parent_id is None and self._root is None:
            self._root = node_id
        self._bump()

        self._bus.emit(GraphEvent.node_added(node.model_copy(deep=True)))

        if parent is not None:
            parent.children.append(node_id)
            edge_type = EdgeType.error if step.type == StepType.error else EdgeType.sequential
            self.add_edge(parent.id, node_id, edge_type)

        return node

    def update_node_duration(self, node_id: str) -> int | None:
        """Record how long a node took, once.

        Returns the node's duration, or None if the node is unknown.
        Later calls leave the first recorded duration in place.
        """
        node = self._nodes.get(node_id)
        started_at = self._node_timestamps.get(node_id)
        if node is None or started_at is None:
            logger.debug("cannot complete unknown node %s", node_id)
            return None
        if node.duration is not None:
            return node.duration

        duration = self._clock() - started_at
        node.duration = duration
        node.metadata = node.metadata.model_copy(update={"processing_time": duration})
        self._bump()

        self._bus.emit(GraphEvent.node_completed(node_id, duration))
        return duration

    def complete_node(self, node_id: str) -> int | None:
        """Signal that processing for a step has finished."""
        return self.update_node_duration(node_id)

    def update_node_metadata(self, node_id: str, patch: dict[str, Any] | NodeMetadata) -> bool:
        """Shallow-merge `patch` into a node's metadata.

        Raises:
            pydantic.ValidationError: if the merged metadata is invalid.
        """
        node = self._nodes.get(node_id)
        if node is None:
            logger.debug("cannot update metadata of unknown node %s", node_id)
            return False

        if isinstance(patch, NodeMetadata):
            patch = patch.model_dump(exclude_unset=True)
        node.metadata = node.metadata.merged(patch)
        self._bump()

        self._bus.emit(GraphEvent.node_updated(node.model_copy(deep=True)))
        return True

    def mark_node_error(self, node_id: str, message: str) -> bool:
        """Retag a node as an error and link it from the last healthy step."""
        node = self._nodes.get(node_id)
        if node is None:
            logger.debug("cannot mark unknown node %s as error", node_id)
            return False

        node.type = StepType.error
        node.metadata = node.metadata.model_copy(update={"error_message": message})
        self._bump()

        last_ok = self._last_successful_node()
        if last_ok is not None and last_ok.id != node_id:
            self.add_edge(last_ok.id, node_id, EdgeType.error, ERROR_EDGE_LABEL)

        self._bus.emit(GraphEvent.node_error(node_id, message))
        return True

    def _last_successful_node(self) -> GraphNode | None:
        for node_id in reversed(self._current_path):
            node = self._nodes.get(node_id)
            if node is not None and node.type != StepType.error:
                return node
        return None

    def add_edge(
        self,
        source: str,
        target: str,
        edge_type: EdgeType | str,
        label: str | None = None,
    ) -> GraphEdge | None:
        """Connect two live nodes.

        The id is derived from (source, target, type, label); a numeric
        suffix disambiguates repeats. Returns None if either end is unknown.
        """
        if source not in self._nodes or target not in self._nodes:
            logger.debug("edge %s -> %s references an unknown node, skipped", source, target)
            return None

        edge_type = EdgeType(edge_type)
        base_id = edge_base_id(source, target, edge_type.value)
        edge_id = f"{base_id}-{label}" if label else base_id

        counter = 0
        while edge_id in self._edges:
            edge_id = f"{base_id}-{counter}"
            counter += 1

        edge = GraphEdge(id=edge_id, source=source, target=target, type=edge_type, label=label)
        self._edges[edge_id] = edge
        self._bump()

        self._bus.emit(GraphEvent.edge_added(edge.model_copy()))
        return edge

    def remove_edge(self, edge_id: str) -> bool:
        if self._edges.pop(edge_id, None) is None:
            return False
        self._bump()
        self._bus.emit(GraphEvent.edge_removed(edge_id))
        return True

    def update_edge(self, edge_id: str, **changes: Any) -> bool:
        """Replace fields of an edge in place. The id itself can't change."""
        edge = self._edges.get(edge_id)
        if edge is None:
            return False
        changes.pop("id", None)
        self._edges[edge_id] = GraphEdge.model_validate({**edge.model_dump(), **changes})
        self._bump()
        return True

    def archive_old_nodes(self, max_nodes: int = DEFAULT_MAX_NODES) -> list[str]:
        """Drop old nodes beyond `max_nodes`, keeping the critical path.

        Edges with any endpoint no longer live are swept in the same pass,
        and archived ids leave the current path and child lists.

        Returns:
            Ids of the archived nodes, oldest first.
        """
        if len(self._nodes) <= max_nodes:
            return []

        keep = select_nodes_to_keep(self._nodes, self._node_timestamps, self._root, max_nodes)
        removed = [node_id for node_id in self._nodes if node_id not in keep]
        if not removed:
            return []

        self._bus.start_batch()
        try:
            for node_id in removed:
                del self._nodes[node_id]
                self._node_timestamps.pop(node_id, None)
                self._bus.emit(GraphEvent.node_removed(node_id))

            live = set(self._nodes)
            for edge_id in dangling_edges(self._edges.values(), live):
                del self._edges[edge_id]
                self._bus.emit(GraphEvent.edge_removed(edge_id))

            self._current_path = [n for n in self._current_path if n in live]
            for node in self._nodes.values():
                if any(child not in live for child in node.children):
                    node.children = [child for child in node.children if child in live]

            self._bump()
        finally:
            self._bus.end_batch()

        logger.info("archived %d nodes, %d remain", len(removed), len(self._nodes))
        return removed

    def reset(self) -> None:
        """Clear all state. The new version always differs from the old one."""
        previous = self._version

        self._nodes = {}
        self._edges = {}
        self._root = None
        self._current_path = []
        self._start_time = None
        self._last_node_timestamp = None
        self._node_timestamps = {}

        self._version = 0
        self._bump()
        if self._version == previous:
            self._bump()

        self._bus.emit(GraphEvent.graph_reset())

    def get_statistics(self) -> GraphStatistics:
        return compute_statistics(self._nodes.values(), self._start_time, self._clock())

    # state transfer

    def to_state(self) -> GraphState:
        """Copy of the full internal state."""
        return GraphState(
            nodes=[(k, v.model_copy(deep=True)) for k, v in self._nodes.items()],
            edges=[(k, v.model_copy()) for k, v in self._edges.items()],
            root_node=self._root,
            current_path=list(self._current_path),
            start_time=self._start_time,
            last_node_timestamp=self._last_node_timestamp,
            node_timestamps=dict(self._node_timestamps),
            graph_version=self._version,
        )

    @classmethod
    def from_state(
        cls,
        state: GraphState,
        clock: Callable[[], int] | None = None,
        bus: EventBus | None = None,
    ) -> "ResearchGraphStore":
        """Build a store from a previously captured state. Emits nothing."""
        store = cls(clock=clock, bus=bus)
        store._nodes = {k: v.model_copy(deep=True) for k, v in state.nodes}
        store._edges = {k: v.model_copy() for k, v in state.edges}
        store._root = state.root_node
        store._current_path = list(state.current_path)
        store._start_time = state.start_time
        store._last_node_timestamp = state.last_node_timestamp
        store._node_timestamps = dict(state.node_timestamps)
        store._version = state.graph_version
        return store
