"""
Socket.IO server: rebroadcasts graph change events as `graph_change`.

Uses python-socketio in ASGI mode so it can wrap FastAPI.
`create_socket_app(fastapi_app)` returns the composite ASGI application to
pass to uvicorn.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

import socketio

from .trace_emitter import ChangeEmitter, global_emitter

logger = logging.getLogger(__name__)

GRAPH_CHANGE = "graph_change"


def create_sio(cors_origins: Optional[List[str]] = None) -> socketio.AsyncServer:
    origins = cors_origins or ["*"]
    sio = socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins="*" if origins == ["*"] else origins,
        logger=False,
        engineio_logger=False,
    )

    @sio.event
    async def connect(sid: str, environ: dict) -> None:
        logger.debug("Socket client connected: %s", sid)

    @sio.event
    async def disconnect(sid: str) -> None:
        logger.debug("Socket client disconnected: %s", sid)

    return sio


def bind_emitter(sio: socketio.AsyncServer, emitter: ChangeEmitter = global_emitter) -> Set["asyncio.Task"]:
    """Forward every event fired on *emitter* to all Socket.IO clients."""
    pending: Set["asyncio.Task"] = set()

    def _on_change(event: Dict[str, Any]) -> None:
        # Called synchronously by ChangeEmitter.fire(); schedule the async emit.
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return  # no loop (e.g. sync tests); nobody can be listening
        task = loop.create_task(sio.emit(GRAPH_CHANGE, event))
        pending.add(task)
        task.add_done_callback(pending.discard)
        task.add_done_callback(_log_emit_failure)

    emitter.on_change(_on_change)
    return pending


def _log_emit_failure(task: "asyncio.Task") -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error("Failed to broadcast %s", GRAPH_CHANGE, exc_info=task.exception())


def create_socket_app(fastapi_app: Any,
                      emitter: ChangeEmitter = global_emitter,
                      cors_origins: Optional[List[str]] = None) -> socketio.ASGIApp:
    """Wrap *fastapi_app* inside a Socket.IO ASGI application."""
    sio = create_sio(cors_origins)
    bind_emitter(sio, emitter)
    return socketio.ASGIApp(sio, other_asgi_app=fastapi_app)
