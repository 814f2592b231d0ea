"""Hierarchical layout, its bounded cache and the off-thread worker."""

from research_graph.layout.cache import (
    DEFAULT_MAX_ENTRIES,
    DEFAULT_MAX_MEMORY_BYTES,
    LayoutCache,
    estimate_layout_bytes,
)
from research_graph.layout.engine import (
    LayoutConfig,
    LayoutEngine,
    layout_key,
)
from research_graph.layout.worker import (
    LayoutWorker,
    handle_layout_request,
)

__all__ = [
    "DEFAULT_MAX_ENTRIES",
    "DEFAULT_MAX_MEMORY_BYTES",
    "LayoutCache",
    "LayoutConfig",
    "LayoutEngine",
    "LayoutWorker",
    "estimate_layout_bytes",
    "handle_layout_request",
    "layout_key",
]
