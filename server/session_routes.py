"""API routes for live research sessions.

Handlers are sync and FastAPI runs them on its thread pool. Every handler
that touches a session's store does so under the session's lock, and node
payloads are copied before the lock is released.
"""

from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ValidationError

from research_graph.adapters.layout_export import export_layout_json
from research_graph.adapters.serialization import GraphDeserializationError
from research_graph.models.graph import GraphNode
from research_graph.models.research_step import NodeMetadata, ResearchStep
from research_graph.session import GraphSnapshot, ResearchSession
from server.registry import SessionRegistry

router = APIRouter()


class CreateSessionRequest(BaseModel):
    """request body for creating a session."""

    session_id: str | None = None


class AddStepRequest(BaseModel):
    """request body for appending a research step."""

    step: ResearchStep
    parent_id: str | None = None
    metadata: NodeMetadata | None = None


class MarkErrorRequest(BaseModel):
    message: str


class ArchiveRequest(BaseModel):
    max_nodes: int | None = None


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


@contextmanager
def _locked_session(registry: SessionRegistry, session_id: str) -> Iterator[ResearchSession]:
    with registry.locked(session_id) as session:
        if session is None:
            raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
        yield session


def _node_or_404(session: ResearchSession, node_id: str) -> GraphNode:
    node = session.store.get_node(node_id)
    if node is None:
        raise HTTPException(status_code=404, detail=f"Node not found: {node_id}")
    return node.model_copy(deep=True)


@router.post("/sessions", status_code=201)
def create_session(
    request: CreateSessionRequest | None = None,
    registry: SessionRegistry = Depends(get_registry),
) -> GraphSnapshot:
    """start a new, empty research session."""
    session_id = request.session_id if request else None
    if session_id and session_id in registry:
        raise HTTPException(status_code=409, detail=f"Session already exists: {session_id}")
    return registry.create(session_id).snapshot()


@router.get("/sessions")
def list_sessions(registry: SessionRegistry = Depends(get_registry)) -> dict[str, Any]:
    """list live sessions and those persisted in storage."""
    return {
        "live": registry.list_ids(),
        "stored": [row.session_id for row in registry.repository.list_sessions()],
    }


@router.get("/sessions/{session_id}/snapshot")
def get_snapshot(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> GraphSnapshot:
    with _locked_session(registry, session_id) as session:
        return session.snapshot()


@router.post("/sessions/{session_id}/steps", status_code=201)
def add_step(
    session_id: str,
    request: AddStepRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> GraphNode:
    """append a step, linked under `parent_id` when it is a live node."""
    with _locked_session(registry, session_id) as session:
        node = session.store.add_node(request.step, parent_id=request.parent_id, metadata=request.metadata)
        return node.model_copy(deep=True)


@router.post("/sessions/{session_id}/nodes/{node_id}/complete")
def complete_node(
    session_id: str,
    node_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> dict[str, Any]:
    with _locked_session(registry, session_id) as session:
        duration = session.store.complete_node(node_id)
        if duration is None:
            raise HTTPException(status_code=404, detail=f"Node not found: {node_id}")
        return {"node_id": node_id, "duration": duration, "version": session.store.version}


@router.post("/sessions/{session_id}/nodes/{node_id}/error")
def mark_error(
    session_id: str,
    node_id: str,
    request: MarkErrorRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> GraphNode:
    with _locked_session(registry, session_id) as session:
        if not session.store.mark_node_error(node_id, request.message):
            raise HTTPException(status_code=404, detail=f"Node not found: {node_id}")
        return _node_or_404(session, node_id)


@router.patch("/sessions/{session_id}/nodes/{node_id}/metadata")
def update_metadata(
    session_id: str,
    node_id: str,
    patch: dict[str, Any],
    registry: SessionRegistry = Depends(get_registry),
) -> GraphNode:
    """shallow-merge fields into a node's metadata."""
    with _locked_session(registry, session_id) as session:
        try:
            updated = session.store.update_node_metadata(node_id, patch)
        except ValidationError as exc:
            raise HTTPException(
                status_code=422,
                detail=exc.errors(include_url=False, include_context=False),
            ) from exc
        if not updated:
            raise HTTPException(status_code=404, detail=f"Node not found: {node_id}")
        return _node_or_404(session, node_id)


@router.post("/sessions/{session_id}/archive")
def archive_session(
    session_id: str,
    request: ArchiveRequest | None = None,
    registry: SessionRegistry = Depends(get_registry),
) -> dict[str, Any]:
    with _locked_session(registry, session_id) as session:
        removed = session.archive(request.max_nodes if request else None)
        return {"archived": removed, "remaining": len(session.store), "version": session.store.version}


@router.post("/sessions/{session_id}/reset")
def reset_session(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> GraphSnapshot:
    with _locked_session(registry, session_id) as session:
        session.store.reset()
        return session.snapshot()


@router.get("/sessions/{session_id}/layout")
def get_layout(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> dict[str, Any]:
    """positioned graph in the layout export format."""
    with _locked_session(registry, session_id) as session:
        return export_layout_json(session.layout(), session.store.get_statistics())


@router.put("/sessions/{session_id}/persist")
def persist_session(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> dict[str, Any]:
    with _locked_session(registry, session_id) as session:
        if not session.persist(registry.repository):
            raise HTTPException(status_code=500, detail=f"Failed to persist session: {session_id}")
        return {"persisted": session_id, "version": session.store.version}


@router.post("/sessions/{session_id}/restore")
def restore_session(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> GraphSnapshot:
    """reload a persisted session, replacing the live one if any."""
    try:
        session = registry.restore(session_id)
    except GraphDeserializationError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if session is None:
        raise HTTPException(status_code=404, detail=f"No stored graph for session: {session_id}")
    with _locked_session(registry, session_id) as session:
        return session.snapshot()


@router.delete("/sessions/{session_id}")
def delete_session(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> dict:
    """drop a live session and its stored graph."""
    if not registry.discard(session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    registry.repository.delete(session_id)
    return {"deleted": session_id}
