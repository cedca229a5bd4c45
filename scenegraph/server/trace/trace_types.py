"""
Graph change event definitions.
All events are plain dicts so they can be emitted over Socket.IO as-is.
"""
from typing import Literal, Optional, TypedDict, Union


class NodeAddedEvent(TypedDict):
    type: Literal["NODE_ADDED"]
    nodeId: str
    kind: str
    ts: int


class NodeRemovedEvent(TypedDict):
    type: Literal["NODE_REMOVED"]
    nodeId: str
    ts: int


class NodeUpdatedEvent(TypedDict):
    type: Literal["NODE_UPDATED"]
    nodeId: str
    fields: list
    ts: int


class EdgeAddedEvent(TypedDict):
    type: Literal["EDGE_ADDED"]
    edgeId: str
    source: str
    target: str
    targetHandle: Optional[str]
    ts: int


class EdgeRemovedEvent(TypedDict):
    type: Literal["EDGE_REMOVED"]
    edgeId: str
    ts: int


class GraphLoadedEvent(TypedDict):
    type: Literal["GRAPH_LOADED"]
    name: str
    ts: int


ChangeEvent = Union[
    NodeAddedEvent,
    NodeRemovedEvent,
    NodeUpdatedEvent,
    EdgeAddedEvent,
    EdgeRemovedEvent,
    GraphLoadedEvent,
]

CHANGE_EVENT_TYPES = frozenset(
    ("NODE_ADDED", "NODE_REMOVED", "NODE_UPDATED", "EDGE_ADDED", "EDGE_REMOVED", "GRAPH_LOADED")
)
