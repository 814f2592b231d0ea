"""Utility functions for the research graph."""

from research_graph.utils.identifiers import (
    edge_base_id,
    generate_request_id,
    generate_session_id,
    iso_to_ms,
    ms_to_iso,
    node_id_for_step,
    now_ms,
    utc_timestamp,
)

__all__ = [
    "edge_base_id",
    "generate_request_id",
    "generate_session_id",
    "iso_to_ms",
    "ms_to_iso",
    "node_id_for_step",
    "now_ms",
    "utc_timestamp",
]
