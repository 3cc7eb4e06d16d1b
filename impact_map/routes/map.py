"""Map routes - interactive incident map sessions.

Each session owns a viewport (global or zoomed into a cluster) and a
selection. Every response carries a freshly recomputed MapView, since
clusters are derived from (issues, active bounds) and never stored.
"""

from typing import List, Optional
import asyncio
import logging

from fastapi import APIRouter, HTTPException, Query, Response

from impact_map.models.issue import Issue
from impact_map.models.map import ClickResponse, MapView, SelectionRequest, SessionCreate
from impact_map.services.issue_store import get_issue_store
from impact_map.services.map_engine import MapSession
from impact_map.services.map_sessions import build_map_view, get_session_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/map", tags=["Map"])


async def _load_store_issues(status: Optional[str] = None) -> List[Issue]:
    """
    Read the store in a worker thread.
    Failures return an empty list so the map still renders (default bounds).
    """
    try:
        loop = asyncio.get_event_loop()
        store = await loop.run_in_executor(None, get_issue_store)
        return await loop.run_in_executor(None, store.load_issues, status)
    except Exception as e:
        logger.error(f"Failed to load map issues: {e}", exc_info=True)
        return []


def _get_session(session_id: str) -> MapSession:
    session = get_session_registry().get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Map session not found: {session_id}")
    return session


def _get_cluster(session: MapSession, cluster_id: str):
    cluster = session.find_cluster(cluster_id, renderable_only=True)
    if cluster is None:
        raise HTTPException(status_code=404, detail=f"Cluster not in current view: {cluster_id}")
    return cluster


@router.get("/issues", response_model=List[Issue])
async def map_issues(status: Optional[str] = Query(None, description="Exact status filter (optional)")):
    """Issues currently in the store, as the map reads them."""
    return await _load_store_issues(status)


@router.post("/sessions", response_model=MapView, status_code=201)
async def create_session(payload: Optional[SessionCreate] = None):
    """
    Start a map session in GLOBAL_NO_SELECTION.
    Without an issue list in the body the store snapshot is used.
    """
    if payload is not None and payload.issues is not None:
        issues = payload.issues
    else:
        issues = await _load_store_issues()
    session_id, session = get_session_registry().create(issues)
    return build_map_view(session_id, session)


@router.get("/sessions/{session_id}", response_model=MapView)
async def get_session_view(session_id: str):
    return build_map_view(session_id, _get_session(session_id))


@router.put("/sessions/{session_id}/issues", response_model=MapView)
async def replace_issues(session_id: str, issues: List[Issue]):
    """Replace the snapshot. A zoomed viewport stays zoomed."""
    session = _get_session(session_id)
    session.set_issues(issues)
    return build_map_view(session_id, session)


@router.post("/sessions/{session_id}/refresh", response_model=MapView)
async def refresh_issues(session_id: str):
    """Reload the snapshot from the store."""
    session = _get_session(session_id)
    issues = await _load_store_issues()
    session.set_issues(issues)
    return build_map_view(session_id, session)


@router.post("/sessions/{session_id}/clusters/{cluster_id}/click", response_model=ClickResponse)
async def click_cluster(session_id: str, cluster_id: str):
    """Open a multi-member cluster or select a singleton's issue."""
    session = _get_session(session_id)
    result = session.click_cluster(_get_cluster(session, cluster_id))
    return ClickResponse(result=result, view=build_map_view(session_id, session))


@router.post("/sessions/{session_id}/clusters/{cluster_id}/zoom", response_model=MapView)
async def zoom_to_cluster(session_id: str, cluster_id: str):
    """Drill down: freeze the viewport around the cluster's members."""
    session = _get_session(session_id)
    session.zoom_to_cluster(_get_cluster(session, cluster_id))
    return build_map_view(session_id, session)


@router.post("/sessions/{session_id}/selection", response_model=MapView)
async def select_issue(session_id: str, payload: SelectionRequest):
    session = _get_session(session_id)
    session.select_issue(payload.issue_id)
    return build_map_view(session_id, session)


@router.post("/sessions/{session_id}/reset", response_model=MapView)
async def reset_view(session_id: str):
    """Reset control or background click."""
    session = _get_session(session_id)
    session.reset()
    return build_map_view(session_id, session)


@router.delete("/sessions/{session_id}", status_code=204)
async def discard_session(session_id: str):
    if not get_session_registry().discard(session_id):
        raise HTTPException(status_code=404, detail=f"Map session not found: {session_id}")
    return Response(status_code=204)
