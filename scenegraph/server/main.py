"""
FastAPI + Socket.IO server for the scene graph editor.

Start with:
    python -m scenegraph.server.main

Or via uvicorn directly:
    uvicorn scenegraph.server.main:socket_app --port 3001 --reload
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scenegraph.server.config import Settings, load_settings
from scenegraph.server.repository import GraphRepository
from scenegraph.server.routes.graph_routes import router
from scenegraph.server.state import GraphState
from scenegraph.server.trace.socket_server import create_socket_app
from scenegraph.server.trace.trace_emitter import ChangeEmitter

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

def create_app(settings: Optional[Settings] = None, emitter: Optional[ChangeEmitter] = None) -> FastAPI:
    settings = settings if settings is not None else load_settings()

    app = FastAPI(title="SceneGraph API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router, prefix="/api")

    app.state.settings = settings
    app.state.graph = GraphState(GraphRepository(settings.graphs_dir), emitter)
    logger.info("Serving graphs from %s", settings.graphs_dir.resolve())
    return app


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Wrap with Socket.IO ASGI layer
# ---------------------------------------------------------------------------

# socket_app is the top-level ASGI app passed to uvicorn.
# Socket.IO connections are handled at the root; all other requests are
# forwarded to the inner FastAPI app.
settings = load_settings()
configure_logging(settings)
app = create_app(settings)
socket_app = create_socket_app(app, app.state.graph.emitter, settings.cors_origins)

# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "scenegraph.server.main:socket_app",
        host=settings.host,
        port=settings.port,
        reload=True,
    )
