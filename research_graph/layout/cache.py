"""Bounded memoization around the layout engine."""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Sequence

from research_graph.layout.engine import LayoutEngine, LayoutKey, layout_key
from research_graph.models.layout import GraphLayout, LayoutEdgeInput, LayoutNodeInput

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 50
DEFAULT_MAX_MEMORY_BYTES = 10 * 1024 * 1024

# rough per-item footprint of a cached layout
NODE_BYTES_ESTIMATE = 300
EDGE_BYTES_ESTIMATE = 200


def estimate_layout_bytes(layout: GraphLayout) -> int:
    return len(layout.nodes) * NODE_BYTES_ESTIMATE + len(layout.edges) * EDGE_BYTES_ESTIMATE


@dataclass
class _CacheEntry:
    layout: GraphLayout
    size: int


class LayoutCache:
    """Memoizes layouts by node/edge signature.

    Two ceilings apply independently: number of entries and estimated
    memory. Whichever is exceeded, the oldest-inserted entries go first.
    A hit returns the very same GraphLayout object that was stored.
    """

    def __init__(
        self,
        engine: LayoutEngine | None = None,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        max_memory_bytes: int = DEFAULT_MAX_MEMORY_BYTES,
    ) -> None:
        self.engine = engine or LayoutEngine()
        self.max_entries = max_entries
        self.max_memory_bytes = max_memory_bytes
        self._entries: OrderedDict[LayoutKey, _CacheEntry] = OrderedDict()
        self._memory_bytes = 0
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    @property
    def memory_bytes(self) -> int:
        """Estimated footprint of all cached layouts."""
        return self._memory_bytes

    def get(self, key: LayoutKey) -> GraphLayout | None:
        entry = self._entries.get(key)
        return entry.layout if entry else None

    def put(self, key: LayoutKey, layout: GraphLayout) -> None:
        if key in self._entries:
            self._memory_bytes -= self._entries.pop(key).size

        size = estimate_layout_bytes(layout)
        self._entries[key] = _CacheEntry(layout=layout, size=size)
        self._memory_bytes += size
        self._evict()

    def clear(self) -> None:
        self._entries.clear()
        self._memory_bytes = 0

    def layout_graph(
        self,
        nodes: Sequence[LayoutNodeInput],
        edges: Sequence[LayoutEdgeInput],
    ) -> GraphLayout:
        """Cached layout for the given nodes and edges."""
        key = layout_key(nodes, edges)
        cached = self.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        layout = self.engine.layout_graph(nodes, edges)
        self.put(key, layout)
        return layout

    def _evict(self) -> None:
        evicted = 0
        while self._entries and (
            len(self._entries) > self.max_entries
            or self._memory_bytes > self.max_memory_bytes
        ):
            _, entry = self._entries.popitem(last=False)
            self._memory_bytes -= entry.size
            evicted += 1
        if evicted:
            logger.debug("evicted %d layout cache entries", evicted)
