"""API route for one-shot layout calculation."""

from typing import Any

from fastapi import APIRouter

from research_graph.layout.worker import handle_layout_request

router = APIRouter()


@router.post("/layout")
def calculate_layout(request: dict[str, Any]) -> dict[str, Any]:
    """run the layout worker protocol in-process.

    Malformed requests come back as a response with `error` set, matching
    what a background worker would post.
    """
    response = handle_layout_request(request)
    return response.model_dump(by_alias=True, exclude_none=True)
