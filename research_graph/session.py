"""A research session: one store, one layout cache, explicit collaborators.

Sessions are created and passed around explicitly; nothing here is a
process-wide singleton, so parallel sessions and test runs never share
mutable state.
"""

import logging
from typing import Callable, Protocol

from pydantic import BaseModel

from research_graph import settings
from research_graph.adapters.serialization import deserialize, serialize
from research_graph.adapters.visualization import (
    VisualizationGraph,
    VisualizationNode,
    export_for_visualization,
)
from research_graph.layout.cache import LayoutCache
from research_graph.models.graph import GraphEdge
from research_graph.models.layout import GraphLayout
from research_graph.store.graph_store import ResearchGraphStore
from research_graph.utils.identifiers import generate_session_id

logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Persistence collaborator: stores serialize() blobs by session id."""

    def save(self, session_id: str, blob: str) -> None:
        ...

    def load(self, session_id: str) -> str | None:
        ...


class GraphSnapshot(BaseModel):
    """Versioned view handed to rendering collaborators on each notification."""

    session_id: str
    version: int
    nodes: list[VisualizationNode]
    edges: list[GraphEdge]
    statistics: dict[str, int | float]


class ResearchSession:
    """Owns the graph and layout cache of a single research session."""

    def __init__(
        self,
        session_id: str | None = None,
        store: ResearchGraphStore | None = None,
        layout_cache: LayoutCache | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.session_id = session_id or generate_session_id()
        self.store = store if store is not None else ResearchGraphStore(clock=clock)
        if layout_cache is None:
            layout_cache = LayoutCache(
                max_entries=settings.LAYOUT_CACHE_MAX_ENTRIES,
                max_memory_bytes=settings.LAYOUT_CACHE_MAX_BYTES,
            )
        self.layout_cache = layout_cache

    def __repr__(self) -> str:
        return f"ResearchSession(session_id={self.session_id!r}, version={self.store.version})"

    def view(self) -> VisualizationGraph:
        return export_for_visualization(self.store)

    def snapshot(self) -> GraphSnapshot:
        view = self.view()
        return GraphSnapshot(
            session_id=self.session_id,
            version=self.store.version,
            nodes=view.nodes,
            edges=view.edges,
            statistics=self.store.get_statistics().to_dict(),
        )

    def layout(self) -> GraphLayout:
        """Layout of the current graph, memoized by structure."""
        view = self.view()
        return self.layout_cache.layout_graph(view.layout_nodes(), view.layout_edges())

    def archive(self, max_nodes: int | None = None) -> list[str]:
        return self.store.archive_old_nodes(max_nodes if max_nodes is not None else settings.MAX_NODES)

    def persist(self, repository: SessionRepository) -> bool:
        """Save the graph. A storage failure is logged, never raised."""
        try:
            repository.save(self.session_id, serialize(self.store))
        except Exception:
            logger.exception("failed to persist research graph for session %s", self.session_id)
            return False
        logger.info("research graph persisted for session %s", self.session_id)
        return True

    @classmethod
    def load(
        cls,
        session_id: str,
        repository: SessionRepository,
        clock: Callable[[], int] | None = None,
    ) -> "ResearchSession | None":
        """Restore a persisted session.

        Returns None when nothing is stored or the repository fails.

        Raises:
            GraphDeserializationError: if the stored blob is malformed.
        """
        try:
            blob = repository.load(session_id)
        except Exception:
            logger.exception("failed to load research graph for session %s", session_id)
            return None
        if blob is None:
            return None
        return cls(session_id=session_id, store=deserialize(blob, clock=clock))
