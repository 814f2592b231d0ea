"""ID generation and timestamp utilities."""

import time
import uuid
from datetime import datetime, timezone

NODE_ID_PREFIX = "node-"


def node_id_for_step(step_id: str) -> str:
    """Derive the graph node ID for a research step ID."""
    return f"{NODE_ID_PREFIX}{step_id}"


def edge_base_id(source: str, target: str, edge_type: str) -> str:
    """Base edge ID before label or collision suffixes are applied."""
    return f"edge-{source}-{target}-{edge_type}"


def generate_session_id() -> str:
    """Generate a unique research session ID (UUID4)."""
    return str(uuid.uuid4())


def generate_request_id() -> str:
    """Generate a layout request ID (16-char hex string)."""
    return uuid.uuid4().hex[:16]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_iso(ms: int) -> str:
    """Convert epoch milliseconds to an ISO8601 UTC timestamp."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()


def iso_to_ms(ts: str) -> int:
    """Parse an ISO8601 timestamp back to epoch milliseconds."""
    # handle trailing Z from other producers
    ts = ts.replace("Z", "+00:00")
    return round(datetime.fromisoformat(ts).timestamp() * 1000)


def utc_timestamp() -> str:
    """Generate an ISO8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()
