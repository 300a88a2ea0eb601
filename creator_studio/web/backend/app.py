"""FastAPI application factory."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from .config import WebConfig
from .dependencies import get_config, get_job_manager, get_websocket_manager
from .routers import (
    export_router,
    jobs_router,
    projects_router,
    stages_router,
    voices_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    job_manager = get_job_manager()
    job_manager.set_websocket_manager(get_websocket_manager())
    job_manager.set_event_loop(asyncio.get_running_loop())

    yield

    job_manager.shutdown(wait=True)


def include_routes(app: FastAPI) -> None:
    """Attach the API routers, health check and WebSocket endpoint."""
    app.include_router(projects_router, prefix="/api/v1")
    app.include_router(stages_router, prefix="/api/v1")
    app.include_router(export_router, prefix="/api/v1")
    app.include_router(jobs_router, prefix="/api/v1")
    app.include_router(voices_router, prefix="/api/v1")

    @app.get("/health")
    def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok"}

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket, client_id: str | None = None):
        """WebSocket endpoint for job updates and notices."""
        ws_manager = get_websocket_manager()
        cid = client_id or f"client_{id(websocket)}"

        await ws_manager.connect(websocket, cid)
        try:
            while True:
                data = await websocket.receive_json()
                project_id = data.get("project_id")
                if not project_id:
                    continue
                if data.get("type") == "subscribe":
                    await ws_manager.subscribe_to_project(cid, project_id)
                    await websocket.send_json({"type": "subscribed", "project_id": project_id})
                elif data.get("type") == "unsubscribe":
                    await ws_manager.unsubscribe_from_project(cid, project_id)
        except WebSocketDisconnect:
            ws_manager.disconnect(cid)


def create_app(config: WebConfig | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        config: Optional configuration. Uses defaults if not provided.

    Returns:
        The FastAPI application.
    """
    if config is None:
        config = get_config()

    app = FastAPI(
        title="Creator Studio API",
        description="API for the script to export video pipeline",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    include_routes(app)
    return app
