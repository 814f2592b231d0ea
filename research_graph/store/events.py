"""Synchronous pub/sub for graph events, with an explicit batching mode."""

import logging
from typing import Callable

from research_graph.models.graph_event import GraphEvent

logger = logging.getLogger(__name__)

GraphEventListener = Callable[[GraphEvent], None]


class EventBus:
    """Delivers graph events to subscribers in emission order.

    Delivery happens on the caller's stack. A listener that raises is
    logged and skipped; the remaining listeners still run and the mutation
    that produced the event is not rolled back.
    """

    def __init__(self) -> None:
        self._listeners: list[GraphEventListener] = []
        self._batching = False
        self._pending: list[GraphEvent] = []

    @property
    def batching(self) -> bool:
        return self._batching

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: GraphEventListener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: GraphEvent) -> None:
        """Deliver an event now, or queue it while batching."""
        if self._batching:
            self._pending.append(event)
            return
        self._deliver(event)

    def start_batch(self) -> None:
        """Queue events until end_batch(). Not nestable: restarting clears the queue."""
        self._batching = True
        self._pending = []

    def end_batch(self) -> None:
        """Flush queued events and leave batching mode.

        Emits one batch-update naming every node touched by the queue,
        then replays the queued events in their original order.
        """
        pending = self._pending
        self._batching = False
        self._pending = []

        if not pending:
            return

        node_ids: list[str] = []
        seen: set[str] = set()
        for event in pending:
            if event.node_id and event.node_id not in seen:
                seen.add(event.node_id)
                node_ids.append(event.node_id)

        self._deliver(GraphEvent.batch_update(node_ids))
        for event in pending:
            self._deliver(event)

    def clear(self) -> None:
        """Drop all listeners and any queued events."""
        self._listeners.clear()
        self._pending = []
        self._batching = False

    def _deliver(self, event: GraphEvent) -> None:
        # copy so listeners may unsubscribe during delivery
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("graph event listener failed on %s", event.type.value)
