"""REST route handlers for the bubbles API.

Routes wrap the engine functions with HTTP semantics. All graph mutations
go through bubbles.engine (source of truth for the invariants).
"""

import asyncio
import contextlib
import logging
import sqlite3
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from starlette.concurrency import run_in_threadpool

from api.deps import get_config, get_db
from api.models import (
    AddPairsRequest,
    AddPairsResponse,
    CreateProjectRequest,
    DeleteActivityResponse,
    DeleteProjectResponse,
    FlipRequest,
    FlipResponse,
    GraphResponse,
    ProjectResponse,
    RemoveEdgeResponse,
    RenameRequest,
    RenameResponse,
)
from bubbles import engine
from bubbles.dot import to_dot
from bubbles.graph import GraphModel
from bubbles.renderer import FORMATS, RenderResult, render

logger = logging.getLogger(__name__)

router = APIRouter()

# How often a running render checks whether the client is still there
DISCONNECT_POLL_SECONDS = 0.25


def _check_error(result: dict[str, Any]) -> None:
    """Convert engine error dicts to HTTPException."""
    if "error" not in result:
        return
    error = result["error"]
    message = result.get("message", "Unknown error")
    if error == "not_found":
        raise HTTPException(status_code=404, detail=message)
    if error == "invalid_input":
        raise HTTPException(status_code=422, detail=message)
    raise HTTPException(status_code=400, detail=message)


async def _load_graph(conn: sqlite3.Connection, project_id: int) -> GraphModel:
    graph = await run_in_threadpool(engine.read_graph, conn, project_id)
    if graph is None:
        raise HTTPException(status_code=404, detail=f"Project '{project_id}' not found")
    return graph


async def _render(request: Request, source: str, fmt: str) -> RenderResult | None:
    """Run the renderer, killing it if the client disconnects first.

    Returns None when the client went away.
    """
    config = get_config()
    task = asyncio.create_task(
        render(
            source,
            fmt,
            command=config["renderer_command"],
            timeout=config["render_timeout"],
        )
    )
    while True:
        done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
        if done:
            return task.result()
        if await request.is_disconnected():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            logger.info("Client disconnected, renderer cancelled")
            return None


def _graph_url(project_id: int, vertical: bool) -> str:
    url = f"/projects/{project_id}/graph.svg"
    if vertical:
        url += "?vertical=1"
    return url


# ── Project endpoints ──────────────────────────────────────


@router.get("/projects", response_model=list[ProjectResponse])
def list_projects(
    conn: sqlite3.Connection = Depends(get_db),
) -> list[dict[str, Any]]:
    """List all projects."""
    return engine.list_projects(conn)


@router.post("/projects", status_code=201, response_model=ProjectResponse)
def create_project_endpoint(
    body: CreateProjectRequest,
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, Any]:
    """Create an empty project."""
    result = engine.create_project(conn, body.name)
    _check_error(result)
    return result


@router.get("/projects/{project_id}", response_model=GraphResponse)
async def get_project(
    project_id: int,
    request: Request,
    vertical: bool = False,
    conn: sqlite3.Connection = Depends(get_db),
) -> Any:
    """Return the project's pairs and bubbles with the rendered SVG.

    A renderer failure is reported in ``error`` next to the DOT ``source``.
    """
    graph = await _load_graph(conn, project_id)
    source = to_dot(graph, vertical=vertical)

    result = await _render(request, source, "svg")
    if result is None:
        return Response(status_code=499)

    activities = []
    for name in graph.activities:
        state = graph.state_of(name)
        activities.append({"name": name, "state": state.value if state else None})

    return {
        "project": {"id": graph.project_id, "name": graph.name},
        "edges": [{"left": e.left, "right": e.right} for e in graph.edges],
        "activities": activities,
        "vertical": vertical,
        "source": source,
        "output": result.output.decode("utf-8", errors="replace") if result.ok else None,
        "error": result.error,
    }


@router.delete("/projects/{project_id}", response_model=DeleteProjectResponse)
def delete_project(
    project_id: int,
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, Any]:
    """Delete a project with all of its pairs and bubble states."""
    result = engine.delete_project(conn, project_id)
    _check_error(result)
    return result


# ── Graph downloads ────────────────────────────────────────


@router.get("/projects/{project_id}/graph.{fmt}")
async def download_graph(
    project_id: int,
    fmt: str,
    request: Request,
    vertical: bool = False,
    conn: sqlite3.Connection = Depends(get_db),
) -> Response:
    """Return the raw DOT source or a rendered SVG/PNG."""
    if fmt != "dot" and fmt not in FORMATS:
        raise HTTPException(status_code=404, detail=f"Unknown graph format '{fmt}'")

    graph = await _load_graph(conn, project_id)
    source = to_dot(graph, vertical=vertical)
    if fmt == "dot":
        return Response(content=source, media_type="text/vnd.graphviz")

    result = await _render(request, source, fmt)
    if result is None:
        return Response(status_code=499)
    if not result.ok:
        return JSONResponse(
            status_code=502, content={"detail": result.error, "source": source}
        )

    headers = {}
    if fmt == "png":
        headers["Content-Disposition"] = 'attachment; filename="graph.png"'
    return Response(content=result.output, media_type=FORMATS[fmt], headers=headers)


# ── Pair endpoints ─────────────────────────────────────────


@router.post(
    "/projects/{project_id}/pairs", status_code=201, response_model=AddPairsResponse
)
def add_pairs(
    project_id: int,
    body: AddPairsRequest,
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, Any]:
    """Add ``left -> center`` and/or ``center -> right``."""
    result = engine.add_triple(
        conn, project_id, left=body.left, center=body.center, right=body.right
    )
    _check_error(result)
    return result


@router.delete("/projects/{project_id}/pairs", response_model=RemoveEdgeResponse)
def remove_pair(
    project_id: int,
    left: str,
    right: str,
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, Any]:
    """Remove one pair; removing a missing pair is a no-op."""
    result = engine.remove_edge(conn, project_id, left, right)
    _check_error(result)
    return result


# ── Activity endpoints ─────────────────────────────────────


@router.post("/projects/{project_id}/rename", response_model=RenameResponse)
def rename_activity(
    project_id: int,
    body: RenameRequest,
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, Any]:
    """Rename a bubble everywhere it appears."""
    result = engine.rename_activity(conn, project_id, body.from_, body.to)
    _check_error(result)
    return result


@router.delete(
    "/projects/{project_id}/activities", response_model=DeleteActivityResponse
)
def delete_activity(
    project_id: int,
    name: str,
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, Any]:
    """Remove every pair that touches a bubble."""
    result = engine.delete_activity(conn, project_id, name)
    _check_error(result)
    return result


@router.post("/projects/{project_id}/flip", response_model=FlipResponse)
def flip(
    project_id: int,
    body: FlipRequest,
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, Any]:
    """Advance a bubble's state and return the new one."""
    result = engine.flip_state(conn, project_id, body.bubble)
    _check_error(result)
    return result


@router.get("/projects/{project_id}/flip")
def flip_link(
    project_id: int,
    bubble: str,
    vertical: bool = False,
    conn: sqlite3.Connection = Depends(get_db),
) -> RedirectResponse:
    """Target of the links embedded in the rendered graph.

    Flips the bubble and sends the browser back to the drawing.
    """
    result = engine.flip_state(conn, project_id, bubble)
    _check_error(result)
    return RedirectResponse(_graph_url(project_id, vertical), status_code=303)
