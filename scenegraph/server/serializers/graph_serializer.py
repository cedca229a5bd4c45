"""
Graph serializer: converts a SceneNetwork to and from a GraphDocument.

GraphDocument wire shape (what the editor and the graph repository exchange):

    {
      "nodes": [
        {"id": "boxGeometry_1", "type": "boxGeometry",
         "position": {"x": 80, "y": 100},
         "data": {"width": 1, "height": 1, "depth": 1}}
      ],
      "edges": [
        {"id": "boxGeometry_1→mesh_1:geometry", "source": "boxGeometry_1",
         "target": "mesh_1", "targetHandle": "geometry"}
      ]
    }

Loading is defensive: every node and edge is checked on its own and a bad one
is skipped (and logged) instead of failing the whole document.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from scenegraph.core.Errors import SceneGraphError
from scenegraph.core.GraphPrimitives import Edge, SceneNode
from scenegraph.core.SceneNetwork import SceneNetwork
from scenegraph.core.Types import Handle, NodeKind, SCENE_NODE_ID
from scenegraph.noderegistry.NodeRegistry import default_properties, validate_properties

logger = logging.getLogger(__name__)


# ── Load report ───────────────────────────────────────────────────────────────

@dataclass
class LoadReport:
    """What a load dropped or repaired, one human-readable line per entity."""
    skipped: List[str] = field(default_factory=list)
    repaired: List[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.skipped and not self.repaired

    def skip(self, message: str) -> None:
        logger.warning("Skipping %s", message)
        self.skipped.append(message)

    def repair(self, message: str) -> None:
        logger.warning("Repaired %s", message)
        self.repaired.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"skipped": list(self.skipped), "repaired": list(self.repaired)}


@dataclass
class LoadResult:
    network: SceneNetwork
    report: LoadReport


# ── Serialization ─────────────────────────────────────────────────────────────

def serialize_node(node: SceneNode) -> Dict[str, Any]:
    return {
        "id": node.id,
        "type": node.kind.value,
        "position": {"x": node.position.get("x", 0.0), "y": node.position.get("y", 0.0)},
        "data": copy.deepcopy(node.properties),
    }


def serialize_edge(edge: Edge) -> Dict[str, Any]:
    return {
        "id": edge.id,
        "source": edge.source,
        "target": edge.target,
        "targetHandle": edge.target_handle,
    }


def serialize_graph(network: SceneNetwork) -> Dict[str, Any]:
    """Serialize *network* into a GraphDocument dict."""
    graph = network.graph
    return {
        "nodes": [serialize_node(n) for n in graph.nodes.values()],
        "edges": [serialize_edge(e) for e in graph.edges.values()],
    }


def empty_document() -> Dict[str, Any]:
    """A document holding only a default scene node."""
    return serialize_graph(SceneNetwork())


# ── Deserialization ───────────────────────────────────────────────────────────

def _parse_position(raw: Any) -> Optional[Dict[str, float]]:
    if not isinstance(raw, dict):
        return None
    try:
        return {"x": float(raw.get("x", 0.0)), "y": float(raw.get("y", 0.0))}
    except (TypeError, ValueError):
        return None


def _load_node(network: SceneNetwork, raw: Any, ctx: str, report: LoadReport) -> None:
    if not isinstance(raw, dict):
        report.skip(f"{ctx}: not an object")
        return

    node_id = raw.get("id")
    if not isinstance(node_id, str) or not node_id:
        report.skip(f"{ctx}: missing or non-string id")
        return

    kind = NodeKind.parse(raw.get("type")) if isinstance(raw.get("type"), str) else None
    if kind is None:
        report.skip(f"{ctx} '{node_id}': unknown node kind {raw.get('type')!r}")
        return

    data = raw.get("data", {})
    if not isinstance(data, dict):
        report.skip(f"{ctx} '{node_id}': data must be an object")
        return

    position = _parse_position(raw.get("position"))

    if kind == NodeKind.GROUP:
        # Membership is rebuilt from edges.
        data = {k: v for k, v in data.items() if k != "nodes"}

    if kind == NodeKind.SCENE or node_id == SCENE_NODE_ID:
        if kind != NodeKind.SCENE or node_id != SCENE_NODE_ID:
            report.skip(f"{ctx} '{node_id}': only one scene node with id '{SCENE_NODE_ID}' is allowed")
            return
        scene = network.scene
        if position:
            scene.position = position
        try:
            scene.properties = validate_properties(kind, {**default_properties(kind), **data})
        except SceneGraphError as exc:
            report.repair(f"{ctx} '{node_id}': {exc}; scene settings reset to defaults")
        return

    if network.graph.has_node(node_id):
        report.skip(f"{ctx} '{node_id}': duplicate node id")
        return

    try:
        properties = validate_properties(kind, {**default_properties(kind), **data})
    except SceneGraphError as exc:
        report.skip(f"{ctx} '{node_id}': {exc}")
        return

    node = network.add_node(kind, position, node_id=node_id)
    node.properties = properties


def _load_edge(network: SceneNetwork, raw: Any, ctx: str, report: LoadReport) -> None:
    if not isinstance(raw, dict):
        report.skip(f"{ctx}: not an object")
        return

    source = raw.get("source")
    target = raw.get("target")
    handle = raw.get("targetHandle")
    if not isinstance(source, str) or not isinstance(target, str):
        report.skip(f"{ctx}: source and target must be strings")
        return
    if handle is not None and not isinstance(handle, str):
        report.skip(f"{ctx}: targetHandle must be a string or null")
        return
    if handle is not None and Handle.parse(handle) is None:
        target_node = network.graph.get_node_by_id(target)
        # Containers ignore handles; anything else with an unknown handle is unusable.
        if target_node is None or not target_node.kind.isContainer():
            report.skip(f"{ctx}: unknown handle '{handle}'")
            return

    try:
        network.connect(source, target, handle)
    except SceneGraphError as exc:
        report.skip(f"{ctx} {source} -> {target}: {exc}")


def deserialize_graph(document: Any) -> LoadResult:
    """
    Rebuild a SceneNetwork from a GraphDocument.

    Never raises for bad content: the returned LoadReport lists every node or
    edge that was dropped and every value that had to be repaired.
    """
    report = LoadReport()
    network = SceneNetwork()

    if not isinstance(document, dict):
        report.skip("document: not an object, loaded an empty scene")
        return LoadResult(network, report)

    raw_nodes = document.get("nodes", [])
    raw_edges = document.get("edges", [])
    if not isinstance(raw_nodes, list):
        report.skip("document.nodes: not a list")
        raw_nodes = []
    if not isinstance(raw_edges, list):
        report.skip("document.edges: not a list")
        raw_edges = []

    stored_members: Dict[str, List[Any]] = {}
    for i, raw in enumerate(raw_nodes):
        _load_node(network, raw, f"nodes[{i}]", report)
        if isinstance(raw, dict) and isinstance(raw.get("id"), str) and isinstance(raw.get("data"), dict) \
                and raw.get("type") == NodeKind.GROUP.value and "nodes" in raw["data"]:
            stored_members.setdefault(raw["id"], raw["data"]["nodes"])

    for i, raw in enumerate(raw_edges):
        _load_edge(network, raw, f"edges[{i}]", report)

    for node in network.graph.nodes.values():
        if node.kind == NodeKind.GROUP and node.id in stored_members:
            stored = stored_members[node.id]
            if stored != node.properties.get("nodes", []):
                report.repair(
                    f"group '{node.id}': membership {stored!r} rebuilt from edges as {node.properties['nodes']!r}"
                )

    if report.clean:
        logger.debug("Loaded %d node(s), %d edge(s)", len(network.graph.nodes), len(network.graph.edges))
    return LoadResult(network, report)


__all__ = [
    "LoadReport",
    "LoadResult",
    "serialize_node",
    "serialize_edge",
    "serialize_graph",
    "deserialize_graph",
    "empty_document",
]
