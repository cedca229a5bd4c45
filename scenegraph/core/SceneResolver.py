"""
Scene tree resolution
=====================
Turns the free-form node graph into the ordered, cycle-free tree a renderer
consumes, and into a flat dependency order (leaves first, scene last).

Resolution rules
----------------
    geometry / material   ->  ResolvedLeaf        (its own property record)
    mesh                  ->  ResolvedMesh        (geometry + material slots, may be incomplete)
    group                 ->  ResolvedGroup       (children in edge insertion order)
    union / subtract      ->  ResolvedOperation   (meshA + meshB)
                              or Incomplete       (when either input is missing)
    scene                 ->  SceneTree           (the root)

Both entry points are read-only and keep no state between calls, so they always
reflect the store as it is at call time.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Union

from .Errors import MalformedGraph
from .GraphPrimitives import Graph, SceneNode
from .Types import Handle, NodeKind, SCENE_NODE_ID


# ── Resolved objects ─────────────────────────────────────────────────────────

@dataclass
class ResolvedLeaf:
    id: str
    kind: str
    properties: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "kind": self.kind, "properties": self.properties}


@dataclass
class ResolvedMesh:
    id: str
    properties: Dict[str, Any] = field(default_factory=dict)
    geometry: Optional[ResolvedLeaf] = None
    material: Optional[ResolvedLeaf] = None
    kind: str = NodeKind.MESH.value

    @property
    def complete(self) -> bool:
        return self.geometry is not None and self.material is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "properties": self.properties,
            "geometry": self.geometry.to_dict() if self.geometry else None,
            "material": self.material.to_dict() if self.material else None,
            "complete": self.complete,
        }


@dataclass
class Incomplete:
    """Marker for a boolean operation that is missing one of its inputs."""
    id: str
    kind: str
    missing: List[str] = field(default_factory=list)

    complete = False

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "kind": self.kind, "complete": False, "missing": list(self.missing)}


@dataclass
class ResolvedOperation:
    id: str
    kind: str
    mesh_a: ResolvedMesh
    mesh_b: ResolvedMesh
    properties: Dict[str, Any] = field(default_factory=dict)

    complete = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "properties": self.properties,
            "meshA": self.mesh_a.to_dict(),
            "meshB": self.mesh_b.to_dict(),
            "complete": True,
        }


@dataclass
class ResolvedGroup:
    id: str
    properties: Dict[str, Any] = field(default_factory=dict)
    children: List["SceneObject"] = field(default_factory=list)
    kind: str = NodeKind.GROUP.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "properties": self.properties,
            "children": [c.to_dict() for c in self.children],
        }


SceneObject = Union[ResolvedMesh, ResolvedGroup, ResolvedOperation, Incomplete]


@dataclass
class SceneTree:
    id: str
    properties: Dict[str, Any] = field(default_factory=dict)
    children: List[SceneObject] = field(default_factory=list)
    kind: str = NodeKind.SCENE.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "properties": self.properties,
            "children": [c.to_dict() for c in self.children],
        }


# ── Resolver ─────────────────────────────────────────────────────────────────

def _properties(node: SceneNode) -> Dict[str, Any]:
    props = copy.deepcopy(node.properties)
    # Membership lists are editor bookkeeping; the tree carries children instead.
    props.pop("nodes", None)
    return props


class SceneResolver:
    def __init__(self, graph: Graph):
        self.graph = graph

    def _node(self, node_id: str) -> SceneNode:
        node = self.graph.get_node_by_id(node_id)
        if node is None:
            raise MalformedGraph(f"Edge references missing node '{node_id}'")
        return node

    def _slot(self, node_id: str, handle: Handle) -> Optional[SceneNode]:
        edges = self.graph.get_incoming_edges(node_id, handle.value)
        if not edges:
            return None
        if len(edges) > 1:
            raise MalformedGraph(f"Slot '{handle.value}' on '{node_id}' holds {len(edges)} edges")
        return self._node(edges[0].source)

    def _enter(self, node: SceneNode, path: Set[str]) -> Set[str]:
        if node.id in path:
            raise MalformedGraph(f"Cycle through '{node.id}' found while resolving the scene")
        return path | {node.id}

    def _leaf(self, node: Optional[SceneNode], expected: str) -> Optional[ResolvedLeaf]:
        if node is None:
            return None
        ok = node.kind.isGeometry() if expected == "geometry" else node.kind.isMaterial()
        if not ok:
            raise MalformedGraph(f"'{node.id}' ({node.kind.value}) cannot supply a {expected}")
        return ResolvedLeaf(node.id, node.kind.value, _properties(node))

    def resolve_mesh(self, node: SceneNode, path: Set[str]) -> ResolvedMesh:
        self._enter(node, path)
        return ResolvedMesh(
            id=node.id,
            properties=_properties(node),
            geometry=self._leaf(self._slot(node.id, Handle.GEOMETRY), "geometry"),
            material=self._leaf(self._slot(node.id, Handle.MATERIAL), "material"),
        )

    def resolve_operation(self, node: SceneNode, path: Set[str]) -> Union[ResolvedOperation, Incomplete]:
        inner = self._enter(node, path)
        inputs = {}
        missing = []
        for handle in (Handle.MESH_A, Handle.MESH_B):
            source = self._slot(node.id, handle)
            if source is None:
                missing.append(handle.value)
                continue
            if source.kind != NodeKind.MESH:
                raise MalformedGraph(f"'{source.id}' ({source.kind.value}) cannot feed '{node.id}'.{handle.value}")
            inputs[handle] = self.resolve_mesh(source, inner)

        if missing:
            return Incomplete(node.id, node.kind.value, missing)
        return ResolvedOperation(
            id=node.id,
            kind=node.kind.value,
            mesh_a=inputs[Handle.MESH_A],
            mesh_b=inputs[Handle.MESH_B],
            properties=_properties(node),
        )

    def resolve_children(self, container: SceneNode, path: Set[str]) -> List[SceneObject]:
        children: List[SceneObject] = []
        for edge in self.graph.get_incoming_edges(container.id, any_handle=True):
            children.append(self.resolve_object(self._node(edge.source), path))
        return children

    def resolve_object(self, node: SceneNode, path: Set[str]) -> SceneObject:
        if node.kind == NodeKind.MESH:
            return self.resolve_mesh(node, path)
        if node.kind.isOperation():
            return self.resolve_operation(node, path)
        if node.kind == NodeKind.GROUP:
            inner = self._enter(node, path)
            return ResolvedGroup(node.id, _properties(node), self.resolve_children(node, inner))
        raise MalformedGraph(f"'{node.id}' ({node.kind.value}) cannot be a child of a container")

    def resolve(self) -> SceneTree:
        scene = self.graph.get_node_by_id(SCENE_NODE_ID)
        if scene is None or scene.kind != NodeKind.SCENE:
            raise MalformedGraph("Graph has no scene node")
        path = self._enter(scene, set())
        return SceneTree(scene.id, _properties(scene), self.resolve_children(scene, path))


def resolve_scene(graph: Graph) -> SceneTree:
    """Resolve the renderer-facing scene tree rooted at the scene node."""
    return SceneResolver(graph).resolve()


# ── Dependency order ─────────────────────────────────────────────────────────

def dependency_order(graph: Graph) -> List[str]:
    """
    Ids of every node the scene (transitively) consumes, each listed after all
    of its own inputs. Leaves come first and the scene node last; siblings
    follow edge insertion order.
    """
    if graph.get_node_by_id(SCENE_NODE_ID) is None:
        raise MalformedGraph("Graph has no scene node")

    order: List[str] = []
    done: Set[str] = set()
    on_path: Set[str] = set()

    # Iterative post-order walk against edge direction (consumer -> suppliers).
    stack: List[tuple] = [(SCENE_NODE_ID, iter(graph.get_incoming_edges(SCENE_NODE_ID, any_handle=True)))]
    on_path.add(SCENE_NODE_ID)
    while stack:
        node_id, edges = stack[-1]
        edge = next(edges, None)
        if edge is None:
            stack.pop()
            on_path.discard(node_id)
            done.add(node_id)
            order.append(node_id)
            continue

        source = edge.source
        if source in done:
            continue
        if source in on_path:
            raise MalformedGraph(f"Cycle through '{source}' while ordering dependencies")
        if graph.get_node_by_id(source) is None:
            raise MalformedGraph(f"Edge {edge.id} references missing node '{source}'")
        on_path.add(source)
        stack.append((source, iter(graph.get_incoming_edges(source, any_handle=True))))
    return order
