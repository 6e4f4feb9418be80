"""Query API endpoints."""

import asyncio

from fastapi import APIRouter, Depends, HTTPException, Request

from ..errors import QueryError
from ..models.responses import (
    QueryRequest,
    QueryResponse,
    SessionInfoResponse,
    ViewInfo,
    ViewListResponse,
)
from ..services.database import QuerySession
from ..services.views import VIEWS

router = APIRouter(prefix="/api", tags=["query"])


def get_session(request: Request) -> QuerySession:
    """The QuerySession the app was created with."""
    return request.app.state.session


async def _run_query(session: QuerySession, sql: str) -> QueryResponse:
    # DuckDB blocks; keep it off the event loop
    try:
        result = await asyncio.to_thread(session.query, sql)
    except QueryError as e:
        raise HTTPException(status_code=400, detail=f"Error: {e}") from e
    return QueryResponse(columns=result.columns, rows=result.rows)


@router.get("/info", response_model=SessionInfoResponse)
async def get_info(session: QuerySession = Depends(get_session)) -> SessionInfoResponse:
    """Counts and file pattern of the discovered session files."""
    info = session.info
    return SessionInfoResponse(
        session_count=info.session_count,
        agent_count=info.agent_count,
        project_count=info.project_count,
        file_pattern=info.file_pattern.render(),
    )


@router.get("/views", response_model=ViewListResponse)
async def list_views() -> ViewListResponse:
    return ViewListResponse(
        views=[ViewInfo(name=name, description=description) for name, description in VIEWS.items()]
    )


@router.get("/views/{view_name}", response_model=QueryResponse)
async def describe_view(view_name: str, session: QuerySession = Depends(get_session)) -> QueryResponse:
    """Column names and types of one view."""
    if view_name not in VIEWS:
        raise HTTPException(status_code=404, detail=f"Unknown view: {view_name}")
    return await _run_query(session, f"DESCRIBE {view_name}")


@router.post("/query", response_model=QueryResponse)
async def run_query(request: QueryRequest, session: QuerySession = Depends(get_session)) -> QueryResponse:
    """Run one SQL statement and return every row."""
    return await _run_query(session, request.sql)
