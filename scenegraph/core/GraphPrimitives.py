from typing import Any, Dict, List, NamedTuple, Optional
from collections import defaultdict

import copy
import logging

from .Types import NodeKind, SCENE_NODE_ID

logger = logging.getLogger(__name__)


def make_edge_id(source: str, target: str, target_handle: Optional[str] = None) -> str:
    edge_id = f"{source}→{target}"
    if target_handle:
        edge_id += f":{target_handle}"
    return edge_id


# Defining Edge as a simple data structure.
# NamedTuple keeps it immutable and hashable; replacing an edge means removing it.
class Edge(NamedTuple):
    id: str
    source: str
    target: str
    target_handle: Optional[str] = None

    @classmethod
    def create(cls, source: str, target: str, target_handle: Optional[str] = None) -> "Edge":
        return cls(make_edge_id(source, target, target_handle), source, target, target_handle)

    def __repr__(self):
        handle = f".{self.target_handle}" if self.target_handle else ""
        return f"Edge({self.source} -> {self.target}{handle})"


class SceneNode:
    def __init__(self,
                 id: str,
                 kind: NodeKind,
                 position: Optional[Dict[str, float]] = None,
                 properties: Optional[Dict[str, Any]] = None):
        self.id = id
        self.kind = kind
        self.position: Dict[str, float] = dict(position) if position else {"x": 0.0, "y": 0.0}
        self.properties: Dict[str, Any] = properties if properties is not None else {}

    def isScene(self) -> bool:
        return self.kind == NodeKind.SCENE

    def copy(self) -> "SceneNode":
        return SceneNode(self.id, self.kind, dict(self.position), copy.deepcopy(self.properties))

    def __eq__(self, other):
        if not isinstance(other, SceneNode):
            return NotImplemented
        return (self.id, self.kind, self.position, self.properties) == \
               (other.id, other.kind, other.position, other.properties)

    def __repr__(self):
        return f"SceneNode({self.id}, {self.kind.value})"


class Graph:
    """
    Node/Edge store (Arena pattern).

    Pure data: nodes keyed by id, edges in insertion order, plus adjacency
    indexes for O(1) lookups. Consistency rules live in SceneNetwork, which is
    the only writer.
    """

    def __init__(self):
        self.nodes: Dict[str, SceneNode] = {}
        self.edges: Dict[str, Edge] = {}  # insertion ordered

        self.incoming_edges: Dict[str, List[Edge]] = defaultdict(list)
        self.outgoing_edges: Dict[str, List[Edge]] = defaultdict(list)

    # --- Nodes ---

    def get_node_by_id(self, node_id: str) -> Optional[SceneNode]:
        return self.nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    @property
    def scene(self) -> Optional[SceneNode]:
        return self.nodes.get(SCENE_NODE_ID)

    def add_node(self, node: SceneNode) -> SceneNode:
        if node.id in self.nodes:
            raise ValueError(f"Node with id '{node.id}' already exists in the graph")
        self.nodes[node.id] = node
        return node

    def remove_node(self, node_id: str) -> List[Edge]:
        """Drop a node and every edge touching it. Returns the removed edges."""
        touching = [e for e in self.edges.values() if e.source == node_id or e.target == node_id]
        for edge in touching:
            self.remove_edge(edge.id)
        del self.nodes[node_id]
        self.incoming_edges.pop(node_id, None)
        self.outgoing_edges.pop(node_id, None)
        return touching

    # --- Edges ---

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        return self.edges.get(edge_id)

    def add_edge(self, edge: Edge) -> Edge:
        if edge.id in self.edges:
            raise ValueError(f"Edge with id '{edge.id}' already exists in the graph")
        self.edges[edge.id] = edge
        self.incoming_edges[edge.target].append(edge)
        self.outgoing_edges[edge.source].append(edge)
        return edge

    def remove_edge(self, edge_id: str) -> Edge:
        edge = self.edges.pop(edge_id)
        self.incoming_edges[edge.target].remove(edge)
        self.outgoing_edges[edge.source].remove(edge)
        return edge

    def get_incoming_edges(self, node_id: str, target_handle: Optional[str] = None, any_handle: bool = False) -> List[Edge]:
        edges = self.incoming_edges.get(node_id, [])
        if any_handle:
            return list(edges)
        return [e for e in edges if e.target_handle == target_handle]

    def get_outgoing_edges(self, node_id: str) -> List[Edge]:
        return list(self.outgoing_edges.get(node_id, []))

    def find_edge(self, source: str, target: str, target_handle: Optional[str] = None) -> Optional[Edge]:
        for edge in self.incoming_edges.get(target, []):
            if edge.source == source and edge.target_handle == target_handle:
                return edge
        return None

    def reset(self):
        self.nodes.clear()
        self.edges.clear()
        self.incoming_edges.clear()
        self.outgoing_edges.clear()

    def __len__(self):
        return len(self.nodes)
