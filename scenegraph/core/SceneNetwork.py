from typing import Any, Callable, Dict, List, Optional, Union

import itertools
import logging

from .ConnectionRules import can_connect, is_single_slot, requires_cycle_check
from .CycleGuard import would_create_cycle
from .Errors import CycleDetected, InvalidConnection, InvalidOperation, UnknownEdge, UnknownNode
from .GraphPrimitives import Edge, Graph, SceneNode, make_edge_id
from .Types import NodeKind, SCENE_NODE_ID
from ..noderegistry.NodeRegistry import default_properties, validate_properties

logger = logging.getLogger(__name__)

ChangeHook = Callable[[Dict[str, Any]], None]


class SceneNetwork:
    """
    Graph mutator. Owns the Graph store and is the only code that writes it.

    Every public mutation validates first and only then touches the store, so a
    rejected request leaves nodes, edges and group membership lists untouched.
    """

    def __init__(self, graph: Optional[Graph] = None, create_scene: bool = True):
        self.graph = graph if graph is not None else Graph()
        self._id_counter = itertools.count(1)

        # Optional observer, called after each committed mutation.
        self.on_change: Optional[ChangeHook] = None

        if create_scene and self.graph.scene is None:
            self._insert_node(SceneNode(SCENE_NODE_ID, NodeKind.SCENE, properties=default_properties(NodeKind.SCENE)))

    # --- Reads ---

    @property
    def scene(self) -> SceneNode:
        return self.graph.scene

    def get_node(self, node_id: str) -> SceneNode:
        node = self.graph.get_node_by_id(node_id)
        if node is None:
            raise UnknownNode(f"Node with id '{node_id}' does not exist in the graph")
        return node

    def get_edge(self, edge_id: str) -> Edge:
        edge = self.graph.get_edge(edge_id)
        if edge is None:
            raise UnknownEdge(f"Edge with id '{edge_id}' does not exist in the graph")
        return edge

    def edges_into(self, target_id: str, target_handle: Optional[str] = None) -> List[Edge]:
        return self.graph.get_incoming_edges(target_id, target_handle)

    def slot_occupant(self, target_id: str, target_handle: str) -> Optional[SceneNode]:
        edges = self.graph.get_incoming_edges(target_id, target_handle)
        if not edges:
            return None
        return self.graph.get_node_by_id(edges[0].source)

    def children_of(self, container_id: str) -> List[str]:
        """Source ids of the container's child edges, in insertion order."""
        return [e.source for e in self.graph.get_incoming_edges(container_id, None)]

    # --- Nodes ---

    def _next_node_id(self, kind: NodeKind) -> str:
        while True:
            candidate = f"{kind.value}_{next(self._id_counter)}"
            if not self.graph.has_node(candidate):
                return candidate

    def _insert_node(self, node: SceneNode) -> SceneNode:
        self.graph.add_node(node)
        self._fire({"type": "NODE_ADDED", "nodeId": node.id, "kind": node.kind.value})
        return node

    def add_node(self,
                 kind: Union[NodeKind, str],
                 position: Optional[Dict[str, float]] = None,
                 node_id: Optional[str] = None) -> SceneNode:
        if not isinstance(kind, NodeKind):
            parsed = NodeKind.parse(kind)
            if parsed is None:
                raise InvalidOperation(f"Unknown node kind '{kind}'")
            kind = parsed

        if kind == NodeKind.SCENE:
            raise InvalidOperation("The graph already has its scene node; a second one cannot be added")

        if node_id is None:
            node_id = self._next_node_id(kind)
        elif node_id == SCENE_NODE_ID or self.graph.has_node(node_id):
            raise InvalidOperation(f"Node id '{node_id}' is already in use")

        node = SceneNode(node_id, kind, position, default_properties(kind))
        logger.debug("Adding node %s (%s)", node.id, kind.value)
        return self._insert_node(node)

    def delete_node(self, node_id: str) -> None:
        if node_id == SCENE_NODE_ID:
            raise InvalidOperation("The scene node cannot be deleted")
        node = self.get_node(node_id)

        # Membership lists are derived from the edges about to go away.
        for edge in self.graph.get_outgoing_edges(node_id):
            self._drop_membership(edge)

        removed = self.graph.remove_node(node.id)
        logger.debug("Deleted node %s and %d edge(s)", node_id, len(removed))
        for edge in removed:
            self._fire({"type": "EDGE_REMOVED", "edgeId": edge.id})
        self._fire({"type": "NODE_REMOVED", "nodeId": node_id})

    def update_node_properties(self, node_id: str, partial: Dict[str, Any]) -> SceneNode:
        node = self.get_node(node_id)
        if node.kind == NodeKind.GROUP and "nodes" in partial:
            raise InvalidOperation("A group's 'nodes' list follows its edges and cannot be set directly")

        merged = dict(node.properties)
        merged.update(partial)
        node.properties = validate_properties(node.kind, merged)

        logger.debug("Updated properties of %s: %s", node_id, sorted(partial.keys()))
        self._fire({"type": "NODE_UPDATED", "nodeId": node_id, "fields": sorted(partial.keys())})
        return node

    def set_position(self, node_id: str, x: float, y: float) -> SceneNode:
        node = self.get_node(node_id)
        node.position = {"x": float(x), "y": float(y)}
        return node

    # --- Edges ---

    def check_connection(self, source_id: str, target_id: str, target_handle: Optional[str] = None) -> None:
        """Raise the error `connect` would raise, without mutating anything."""
        source = self.get_node(source_id)
        target = self.get_node(target_id)

        if not can_connect(source, target, target_handle):
            handle = f" at '{target_handle}'" if target_handle else ""
            raise InvalidConnection(
                f"Cannot connect '{source.id}' ({source.kind.value}) to '{target.id}' ({target.kind.value}){handle}"
            )

        if requires_cycle_check(source.kind, target.kind) and would_create_cycle(self.graph, source.id, target.id):
            raise CycleDetected(f"Connecting '{source.id}' into '{target.id}' would create a container cycle")

    def connect(self, source_id: str, target_id: str, target_handle: Optional[str] = None) -> Edge:
        self.check_connection(source_id, target_id, target_handle)
        target = self.graph.get_node_by_id(target_id)

        if target.kind.isContainer():
            target_handle = None

        existing = self.graph.find_edge(source_id, target_id, target_handle)
        if existing is not None:
            return existing

        edge_id = self._free_edge_id(source_id, target_id, target_handle)

        if is_single_slot(target.kind, target_handle):
            for occupant in self.graph.get_incoming_edges(target_id, target_handle):
                logger.debug("Replacing %r in slot %s.%s", occupant, target_id, target_handle)
                self.graph.remove_edge(occupant.id)
                self._fire({"type": "EDGE_REMOVED", "edgeId": occupant.id})

        edge = self.graph.add_edge(Edge(edge_id, source_id, target_id, target_handle))

        if target.kind == NodeKind.GROUP:
            members = target.properties.setdefault("nodes", [])
            if source_id not in members:
                members.append(source_id)

        logger.debug("Connected %r", edge)
        self._fire({
            "type": "EDGE_ADDED",
            "edgeId": edge.id,
            "source": edge.source,
            "target": edge.target,
            "targetHandle": edge.target_handle,
        })
        return edge

    def _free_edge_id(self, source_id: str, target_id: str, target_handle: Optional[str]) -> str:
        """Readable edge id, suffixed when another edge already owns it (ids may contain ':')."""
        base = make_edge_id(source_id, target_id, target_handle)
        edge_id = base
        n = 2
        while self.graph.get_edge(edge_id) is not None:
            edge_id = f"{base}#{n}"
            n += 1
        return edge_id

    def disconnect(self, edge_id: str) -> Edge:
        edge = self.get_edge(edge_id)
        self._drop_membership(edge)
        self.graph.remove_edge(edge.id)
        logger.debug("Disconnected %r", edge)
        self._fire({"type": "EDGE_REMOVED", "edgeId": edge.id})
        return edge

    def _drop_membership(self, edge: Edge) -> None:
        if edge.target_handle is not None:
            return
        target = self.graph.get_node_by_id(edge.target)
        if target is None or target.kind != NodeKind.GROUP:
            return
        members = target.properties.get("nodes", [])
        if edge.source in members:
            members.remove(edge.source)

    # --- Events ---

    def _fire(self, payload: Dict[str, Any]) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change(payload)
        except Exception:
            logger.exception("Change listener failed for %s", payload.get("type"))
