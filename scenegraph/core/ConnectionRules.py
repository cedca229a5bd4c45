from typing import Optional

from .GraphPrimitives import SceneNode
from .Types import (
    Handle,
    NodeKind,
    CONTAINER_ELIGIBLE_KINDS,
    CONTAINER_KINDS,
    MESH_HANDLES,
    OPERATION_HANDLES,
)


def is_single_slot(target_kind: NodeKind, target_handle: Optional[str]) -> bool:
    """True when (target kind, handle) is an input slot that holds at most one edge."""
    handle = Handle.parse(target_handle)
    if handle is None:
        return False
    if target_kind == NodeKind.MESH:
        return handle in MESH_HANDLES
    if target_kind.isOperation():
        return handle in OPERATION_HANDLES
    return False


def can_connect_kinds(source_kind: NodeKind, target_kind: NodeKind, target_handle: Optional[str]) -> bool:
    # Containers take children through any handle; the network stores them handle-less.
    if target_kind in CONTAINER_KINDS:
        return source_kind in CONTAINER_ELIGIBLE_KINDS

    handle = Handle.parse(target_handle)
    if handle is None:
        return False

    if target_kind == NodeKind.MESH:
        if handle == Handle.GEOMETRY:
            return source_kind.isGeometry()
        if handle == Handle.MATERIAL:
            return source_kind.isMaterial()
        return False

    if target_kind.isOperation():
        return handle in OPERATION_HANDLES and source_kind == NodeKind.MESH

    return False


def can_connect(source: SceneNode, target: SceneNode, target_handle: Optional[str] = None) -> bool:
    """
    Decide whether an edge source -> target (at target_handle) is admissible.

    Pure function of the two node kinds and the handle name; it never looks at
    the rest of the graph. Cycles are the CycleGuard's business.
    """
    return can_connect_kinds(source.kind, target.kind, target_handle)


def requires_cycle_check(source_kind: NodeKind, target_kind: NodeKind) -> bool:
    return target_kind in CONTAINER_KINDS and source_kind in CONTAINER_ELIGIBLE_KINDS
