from enum import Enum
from typing import FrozenSet, Optional


class NodeCategory(Enum):
    GEOMETRY = "geometry"
    MATERIAL = "material"
    OBJECT = "object"
    OPERATION = "operation"
    UTILITY = "utility"


class NodeKind(Enum):
    # Geometry primitives
    BOX_GEOMETRY = "boxGeometry"
    SPHERE_GEOMETRY = "sphereGeometry"
    CYLINDER_GEOMETRY = "cylinderGeometry"
    CAPSULE_GEOMETRY = "capsuleGeometry"
    CIRCLE_GEOMETRY = "circleGeometry"
    CONE_GEOMETRY = "coneGeometry"
    EXTRUDE_GEOMETRY = "extrudeGeometry"
    ICOSAHEDRON_GEOMETRY = "icosahedronGeometry"
    PLANE_GEOMETRY = "planeGeometry"
    RING_GEOMETRY = "ringGeometry"
    TORUS_KNOT_GEOMETRY = "torusKnotGeometry"
    TUBE_GEOMETRY = "tubeGeometry"

    # Materials
    MESH_NORMAL_MATERIAL = "meshNormalMaterial"
    MESH_BASIC_MATERIAL = "meshBasicMaterial"
    MESH_PHONG_MATERIAL = "meshPhongMaterial"
    MESH_STANDARD_MATERIAL = "meshStandardMaterial"

    # Scene objects
    MESH = "mesh"
    GROUP = "group"
    SCENE = "scene"

    # Boolean operations
    UNION = "union"
    SUBTRACT = "subtract"

    # Utilities
    LOOP = "loop"
    BULK_EDIT = "bulkEdit"

    @staticmethod
    def parse(value: str) -> Optional["NodeKind"]:
        """Return the kind for a wire string, or None when it is not a known kind."""
        try:
            return NodeKind(value)
        except ValueError:
            return None

    @property
    def category(self) -> NodeCategory:
        if self in GEOMETRY_KINDS:
            return NodeCategory.GEOMETRY
        if self in MATERIAL_KINDS:
            return NodeCategory.MATERIAL
        if self in OPERATION_KINDS:
            return NodeCategory.OPERATION
        if self in UTILITY_KINDS:
            return NodeCategory.UTILITY
        return NodeCategory.OBJECT

    def isGeometry(self) -> bool:
        return self in GEOMETRY_KINDS

    def isMaterial(self) -> bool:
        return self in MATERIAL_KINDS

    def isOperation(self) -> bool:
        return self in OPERATION_KINDS

    def isContainer(self) -> bool:
        return self in CONTAINER_KINDS

    def isContainerEligible(self) -> bool:
        return self in CONTAINER_ELIGIBLE_KINDS


class Handle(Enum):
    GEOMETRY = "geometry"
    MATERIAL = "material"
    MESH_A = "meshA"
    MESH_B = "meshB"

    @staticmethod
    def parse(value: Optional[str]) -> Optional["Handle"]:
        if value is None:
            return None
        try:
            return Handle(value)
        except ValueError:
            return None


GEOMETRY_KINDS: FrozenSet[NodeKind] = frozenset({
    NodeKind.BOX_GEOMETRY,
    NodeKind.SPHERE_GEOMETRY,
    NodeKind.CYLINDER_GEOMETRY,
    NodeKind.CAPSULE_GEOMETRY,
    NodeKind.CIRCLE_GEOMETRY,
    NodeKind.CONE_GEOMETRY,
    NodeKind.EXTRUDE_GEOMETRY,
    NodeKind.ICOSAHEDRON_GEOMETRY,
    NodeKind.PLANE_GEOMETRY,
    NodeKind.RING_GEOMETRY,
    NodeKind.TORUS_KNOT_GEOMETRY,
    NodeKind.TUBE_GEOMETRY,
})

MATERIAL_KINDS: FrozenSet[NodeKind] = frozenset({
    NodeKind.MESH_NORMAL_MATERIAL,
    NodeKind.MESH_BASIC_MATERIAL,
    NodeKind.MESH_PHONG_MATERIAL,
    NodeKind.MESH_STANDARD_MATERIAL,
})

OPERATION_KINDS: FrozenSet[NodeKind] = frozenset({NodeKind.UNION, NodeKind.SUBTRACT})

UTILITY_KINDS: FrozenSet[NodeKind] = frozenset({NodeKind.LOOP, NodeKind.BULK_EDIT})

# Targets that take many children through no-handle edges.
CONTAINER_KINDS: FrozenSet[NodeKind] = frozenset({NodeKind.GROUP, NodeKind.SCENE})

# Sources that may be nested inside a container.
CONTAINER_ELIGIBLE_KINDS: FrozenSet[NodeKind] = frozenset(
    {NodeKind.MESH, NodeKind.GROUP} | OPERATION_KINDS
)

# Kinds whose properties carry a "nodes" membership list.
MEMBERSHIP_KINDS: FrozenSet[NodeKind] = frozenset({NodeKind.GROUP, NodeKind.LOOP})

MESH_HANDLES: FrozenSet[Handle] = frozenset({Handle.GEOMETRY, Handle.MATERIAL})
OPERATION_HANDLES: FrozenSet[Handle] = frozenset({Handle.MESH_A, Handle.MESH_B})

SCENE_NODE_ID = "scene"
DEFAULT_GRAPH_NAME = "default"
