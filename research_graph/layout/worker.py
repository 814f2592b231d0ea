"""Off-thread layout for large graphs.

The request/response protocol is keyed by a caller-supplied request id so
overlapping requests are never confused. There is no cancellation: when a
newer request supersedes an older one, the caller drops the stale response
(see LayoutWorker.is_latest).

Example:
    with LayoutWorker() as worker:
        future = worker.submit(view.layout_nodes(), view.layout_edges())
        response = future.result()
        if worker.is_latest(response) and response.error is None:
            render(response.positioned_nodes, response.routed_edges)
"""

import logging
from concurrent.futures import Executor, Future, ProcessPoolExecutor
from typing import Sequence

from pydantic import ValidationError

from research_graph.layout.engine import LayoutConfig, LayoutEngine
from research_graph.models.layout import (
    LayoutEdgeInput,
    LayoutNodeInput,
    LayoutRequest,
    LayoutResponse,
)
from research_graph.utils.identifiers import generate_request_id

logger = logging.getLogger(__name__)


def handle_layout_request(
    request: LayoutRequest | dict,
    config: LayoutConfig | None = None,
) -> LayoutResponse:
    """Compute one layout request. Never raises; failures land in `error`."""
    request_id = ""
    try:
        if not isinstance(request, LayoutRequest):
            if isinstance(request, dict):
                request_id = str(request.get("requestId") or request.get("request_id") or "")
            request = LayoutRequest.model_validate(request)
        request_id = request.request_id

        layout = LayoutEngine(config).layout_graph(request.nodes, request.edges)
        return LayoutResponse(
            request_id=request_id,
            positioned_nodes=layout.nodes,
            routed_edges=layout.edges,
        )
    except ValidationError as exc:
        logger.warning("invalid layout request %s: %s", request_id or "<unknown>", exc)
        return LayoutResponse(request_id=request_id, error=f"invalid layout request: {exc}")
    except Exception as exc:
        logger.exception("layout calculation failed for request %s", request_id)
        return LayoutResponse(request_id=request_id, error=f"layout calculation failed: {exc}")


class LayoutWorker:
    """Runs layout requests on an executor (a process pool by default)."""

    def __init__(
        self,
        executor: Executor | None = None,
        max_workers: int = 1,
        config: LayoutConfig | None = None,
    ) -> None:
        """Create a worker.

        Args:
            executor: executor to run on. If None, a ProcessPoolExecutor is
                created and shut down with the worker.
            max_workers: pool size when the worker creates its own pool.
            config: layout geometry passed to every request.
        """
        self._owns_executor = executor is None
        self._executor = executor or ProcessPoolExecutor(max_workers=max_workers)
        self._config = config
        self._latest_request_id: str | None = None

    @property
    def latest_request_id(self) -> str | None:
        return self._latest_request_id

    def submit(
        self,
        nodes: Sequence[LayoutNodeInput],
        edges: Sequence[LayoutEdgeInput],
        request_id: str | None = None,
    ) -> "Future[LayoutResponse]":
        """Queue a layout. The returned future always resolves to a LayoutResponse."""
        request = LayoutRequest(
            request_id=request_id or generate_request_id(),
            nodes=list(nodes),
            edges=list(edges),
        )
        self._latest_request_id = request.request_id

        try:
            return self._executor.submit(handle_layout_request, request, self._config)
        except Exception as exc:
            logger.exception("could not dispatch layout request %s", request.request_id)
            failed: Future[LayoutResponse] = Future()
            failed.set_result(LayoutResponse(
                request_id=request.request_id,
                error=f"layout worker unavailable: {exc}",
            ))
            return failed

    def is_latest(self, response: LayoutResponse) -> bool:
        """False when a newer request has been submitted since this one."""
        return response.request_id == self._latest_request_id

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> "LayoutWorker":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
