"""
Graph REST routes.

All routes are mounted under /api by main.py and operate on the GraphState
stored in `app.state.graph`.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field

from scenegraph.core.Errors import (
    AlreadyExists,
    Forbidden,
    InvalidName,
    InvalidOperation,
    InvalidConnection,
    MalformedGraph,
    NotFound,
    RepositoryError,
    SceneGraphError,
    UnknownNode,
)
from scenegraph.core.SceneResolver import dependency_order, resolve_scene
from scenegraph.noderegistry.NodeRegistry import default_properties, registered_kinds
from scenegraph.server.serializers.graph_serializer import serialize_edge, serialize_node
from scenegraph.server.state import GraphState

logger = logging.getLogger(__name__)

router = APIRouter()

# Most specific first; UnknownEdge and CycleDetected are covered by their bases.
_STATUS_BY_ERROR = (
    (UnknownNode, 404),
    (NotFound, 404),
    (Forbidden, 403),
    (AlreadyExists, 409),
    (InvalidName, 400),
    (InvalidConnection, 400),
    (InvalidOperation, 400),
    (MalformedGraph, 422),
    (RepositoryError, 500),
)


def _http_error(exc: SceneGraphError) -> HTTPException:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            break
    else:
        status = 400
    if status >= 500:
        logger.error("Request failed: %s", exc)
    return HTTPException(status_code=status, detail=str(exc))


def get_state(request: Request) -> GraphState:
    return request.app.state.graph


# ── GET /health ───────────────────────────────────────────────────────────────

@router.get("/health")
async def health() -> Dict[str, Any]:
    return {"status": "ok"}


# ── GET /graph ────────────────────────────────────────────────────────────────

@router.get("/graph")
async def get_graph(state: GraphState = Depends(get_state)) -> Dict[str, Any]:
    return {"name": state.name, "graph": state.document()}


# ── POST /graph/nodes ─────────────────────────────────────────────────────────

class Position(BaseModel):
    x: float = 0.0
    y: float = 0.0


class CreateNodeBody(BaseModel):
    kind: str
    position: Optional[Position] = None
    id: Optional[str] = None


@router.post("/graph/nodes", status_code=201)
async def create_node(body: CreateNodeBody, state: GraphState = Depends(get_state)) -> Dict[str, Any]:
    async with state.lock:
        try:
            position = body.position.model_dump() if body.position else None
            node = state.network.add_node(body.kind, position, node_id=body.id)
        except SceneGraphError as exc:
            raise _http_error(exc)
        return serialize_node(node)


# ── DELETE /graph/nodes/:id ───────────────────────────────────────────────────

@router.delete("/graph/nodes/{node_id}", status_code=204)
async def delete_node(node_id: str, state: GraphState = Depends(get_state)) -> Response:
    async with state.lock:
        try:
            state.network.delete_node(node_id)
        except SceneGraphError as exc:
            raise _http_error(exc)
    return Response(status_code=204)


# ── PATCH /graph/nodes/:id/properties ─────────────────────────────────────────

@router.patch("/graph/nodes/{node_id}/properties")
async def update_properties(node_id: str,
                            body: Dict[str, Any],
                            state: GraphState = Depends(get_state)) -> Dict[str, Any]:
    async with state.lock:
        try:
            node = state.network.update_node_properties(node_id, body)
        except SceneGraphError as exc:
            raise _http_error(exc)
        return serialize_node(node)


# ── PUT /graph/nodes/:id/position ─────────────────────────────────────────────

@router.put("/graph/nodes/{node_id}/position")
async def set_position(node_id: str, body: Position, state: GraphState = Depends(get_state)) -> Dict[str, Any]:
    async with state.lock:
        try:
            node = state.network.set_position(node_id, body.x, body.y)
        except SceneGraphError as exc:
            raise _http_error(exc)
        return serialize_node(node)


# ── POST /graph/edges ─────────────────────────────────────────────────────────

class ConnectBody(BaseModel):
    source: str
    target: str
    targetHandle: Optional[str] = None


@router.post("/graph/edges", status_code=201)
async def connect(body: ConnectBody, state: GraphState = Depends(get_state)) -> Dict[str, Any]:
    async with state.lock:
        try:
            edge = state.network.connect(body.source, body.target, body.targetHandle)
        except SceneGraphError as exc:
            raise _http_error(exc)
        return serialize_edge(edge)


# ── DELETE /graph/edges/:edgeId ───────────────────────────────────────────────

@router.delete("/graph/edges/{edge_id}", status_code=204)
async def disconnect(edge_id: str, state: GraphState = Depends(get_state)) -> Response:
    async with state.lock:
        try:
            state.network.disconnect(edge_id)
        except SceneGraphError as exc:
            raise _http_error(exc)
    return Response(status_code=204)


# ── GET /graph/scene ──────────────────────────────────────────────────────────

@router.get("/graph/scene")
async def get_scene(state: GraphState = Depends(get_state)) -> Dict[str, Any]:
    try:
        return resolve_scene(state.network.graph).to_dict()
    except SceneGraphError as exc:
        raise _http_error(exc)


# ── GET /graph/order ──────────────────────────────────────────────────────────

@router.get("/graph/order")
async def get_order(state: GraphState = Depends(get_state)) -> List[str]:
    try:
        return dependency_order(state.network.graph)
    except SceneGraphError as exc:
        raise _http_error(exc)


# ── GET /node-kinds ───────────────────────────────────────────────────────────

@router.get("/node-kinds")
async def list_node_kinds() -> List[Dict[str, Any]]:
    return [
        {"kind": kind.value, "category": kind.category.value, "defaults": default_properties(kind)}
        for kind in registered_kinds()
    ]


# ── GET /graphs ───────────────────────────────────────────────────────────────

@router.get("/graphs")
async def list_graphs(state: GraphState = Depends(get_state)) -> Dict[str, Any]:
    try:
        return state.repository.list()
    except SceneGraphError as exc:
        raise _http_error(exc)


# ── POST /graphs ──────────────────────────────────────────────────────────────

class SaveGraphBody(BaseModel):
    name: str = Field(..., min_length=1)
    data: Optional[Dict[str, Any]] = None
    overwrite: bool = False


@router.post("/graphs", status_code=201)
async def save_graph(body: SaveGraphBody, state: GraphState = Depends(get_state)) -> Dict[str, Any]:
    async with state.lock:
        try:
            state.save(body.name, body.data, overwrite=body.overwrite)
        except SceneGraphError as exc:
            raise _http_error(exc)
    return {"success": True, "name": body.name}


# ── POST /graphs/:name/load ───────────────────────────────────────────────────

@router.post("/graphs/{name}/load")
async def load_graph(name: str, state: GraphState = Depends(get_state)) -> Dict[str, Any]:
    async with state.lock:
        try:
            report = state.load(name)
        except SceneGraphError as exc:
            raise _http_error(exc)
        return {"name": name, "graph": state.document(), "report": report.to_dict()}


# ── DELETE /graphs/:name ──────────────────────────────────────────────────────

@router.delete("/graphs/{name}")
async def delete_graph(name: str, state: GraphState = Depends(get_state)) -> Dict[str, Any]:
    async with state.lock:
        try:
            state.repository.delete(name)
        except SceneGraphError as exc:
            raise _http_error(exc)
    return {"success": True}
