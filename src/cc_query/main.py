"""FastAPI application serving queries over one QuerySession."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from loguru import logger

from .routers import query
from .services.database import QuerySession


def create_app(session: QuerySession) -> FastAPI:
    """Build the API app around an already-discovered session.

    The session is closed when the app shuts down.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        info = session.info
        logger.info(
            f"Serving {info.session_count} session(s), {info.agent_count} agent file(s) "
            f"from {info.project_count} project(s)"
        )
        yield
        logger.info("Shutting down cc-query API")
        session.close()

    app = FastAPI(
        title="cc-query",
        description="SQL query API over Claude Code session logs",
        version="0.1.0",
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
    )
    app.state.session = session
    app.include_router(query.router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app
