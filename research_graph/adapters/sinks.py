"""Event sinks that record graph events.

Attach one with `store.subscribe(sink.append)`.
"""

from pathlib import Path

from research_graph.models.graph_event import GraphEvent, GraphEventType


class EventSink:
    """Protocol for receiving graph events."""

    def append(self, event: GraphEvent) -> None:
        """Append an event to the sink."""
        raise NotImplementedError


class ListSink(EventSink):
    """Stores events in a list."""

    def __init__(self) -> None:
        self.events: list[GraphEvent] = []

    def append(self, event: GraphEvent) -> None:
        """Append an event to the list."""
        self.events.append(event)

    def of_type(self, event_type: GraphEventType) -> list[GraphEvent]:
        """Recorded events of one type, in arrival order."""
        return [e for e in self.events if e.type == event_type]

    def clear(self) -> None:
        """Clear all events."""
        self.events.clear()


class FileSink(EventSink):
    """Writes events to a JSONL file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, event: GraphEvent) -> None:
        """Append an event to the file."""
        with open(self.path, "a") as f:
            f.write(event.model_dump_json() + "\n")

    def read(self) -> list[GraphEvent]:
        """Load every event written so far."""
        if not self.path.exists():
            return []
        with open(self.path) as f:
            return [GraphEvent.model_validate_json(line) for line in f if line.strip()]
