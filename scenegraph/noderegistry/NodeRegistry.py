import math
from typing import Any, Callable, Dict, List, Literal, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.Errors import InvalidOperation
from ..core.Types import NodeKind

# =========================================================================================
# PER-KIND PROPERTY SCHEMAS
#
# Every NodeKind owns exactly one schema class. The schema gives a freshly created
# node its default property record and validates every later property update.
# Unknown extra fields are kept so documents written by newer editors still load.
# =========================================================================================

_kind_registry: Dict[NodeKind, Type["NodeProperties"]] = {}


def register(kind: NodeKind) -> Callable[[Type["NodeProperties"]], Type["NodeProperties"]]:
    """Decorator to register a property schema for a node kind."""
    def decorator(schema: Type["NodeProperties"]) -> Type["NodeProperties"]:
        if kind in _kind_registry:
            raise ValueError(f"Node kind '{kind.value}' is already registered.")
        _kind_registry[kind] = schema
        return schema
    return decorator


def schema_for(kind: NodeKind) -> Type["NodeProperties"]:
    schema = _kind_registry.get(kind)
    if schema is None:
        raise InvalidOperation(f"No property schema registered for kind '{kind.value}'")
    return schema


def default_properties(kind: NodeKind) -> Dict[str, Any]:
    """Return a fresh default property record for *kind*."""
    return schema_for(kind)().model_dump()


def validate_properties(kind: NodeKind, properties: Dict[str, Any]) -> Dict[str, Any]:
    """Validate *properties* against the kind's schema and return the normalised dict."""
    try:
        return schema_for(kind).model_validate(properties).model_dump()
    except ValidationError as exc:
        raise InvalidOperation(
            f"Invalid properties for kind '{kind.value}': {exc.error_count()} error(s): {exc.errors()[0]['msg']}"
        ) from exc


def registered_kinds() -> List[NodeKind]:
    return list(_kind_registry.keys())


class NodeProperties(BaseModel):
    model_config = ConfigDict(extra="allow", validate_assignment=True)


class Vector3(BaseModel):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


def _unit_scale() -> Vector3:
    return Vector3(x=1.0, y=1.0, z=1.0)


Side = Literal["front", "back", "double"]


# ── Geometry ─────────────────────────────────────────────────────────────────

@register(NodeKind.BOX_GEOMETRY)
class BoxGeometryProperties(NodeProperties):
    width: float = 1.0
    height: float = 1.0
    depth: float = 1.0


@register(NodeKind.SPHERE_GEOMETRY)
class SphereGeometryProperties(NodeProperties):
    radius: float = 1.0
    widthSegments: int = 32
    heightSegments: int = 16


@register(NodeKind.CYLINDER_GEOMETRY)
class CylinderGeometryProperties(NodeProperties):
    radiusTop: float = 1.0
    radiusBottom: float = 1.0
    height: float = 1.0
    radialSegments: int = 32
    heightSegments: int = 1
    openEnded: bool = False


@register(NodeKind.CAPSULE_GEOMETRY)
class CapsuleGeometryProperties(NodeProperties):
    radius: float = 1.0
    length: float = 1.0
    capSegments: int = 4
    radialSegments: int = 8


@register(NodeKind.CIRCLE_GEOMETRY)
class CircleGeometryProperties(NodeProperties):
    radius: float = 1.0
    segments: int = 32


@register(NodeKind.CONE_GEOMETRY)
class ConeGeometryProperties(NodeProperties):
    radius: float = 1.0
    height: float = 1.0
    radialSegments: int = 32
    heightSegments: int = 1
    openEnded: bool = False


@register(NodeKind.EXTRUDE_GEOMETRY)
class ExtrudeGeometryProperties(NodeProperties):
    depth: float = 1.0
    bevelEnabled: bool = True
    bevelThickness: float = 0.2
    bevelSize: float = 0.1
    bevelSegments: int = 3
    steps: int = 1


@register(NodeKind.ICOSAHEDRON_GEOMETRY)
class IcosahedronGeometryProperties(NodeProperties):
    radius: float = 1.0
    detail: int = 0


@register(NodeKind.PLANE_GEOMETRY)
class PlaneGeometryProperties(NodeProperties):
    width: float = 1.0
    height: float = 1.0
    widthSegments: int = 1
    heightSegments: int = 1


@register(NodeKind.RING_GEOMETRY)
class RingGeometryProperties(NodeProperties):
    innerRadius: float = 0.5
    outerRadius: float = 1.0
    thetaSegments: int = 32
    phiSegments: int = 1
    thetaStart: float = 0.0
    thetaLength: float = 2 * math.pi


@register(NodeKind.TORUS_KNOT_GEOMETRY)
class TorusKnotGeometryProperties(NodeProperties):
    radius: float = 1.0
    tube: float = 0.4
    tubularSegments: int = 64
    radialSegments: int = 8
    p: int = 2
    q: int = 3


@register(NodeKind.TUBE_GEOMETRY)
class TubeGeometryProperties(NodeProperties):
    radius: float = 1.0
    tubeRadius: float = 0.4
    radialSegments: int = 8
    tubularSegments: int = 64
    closed: bool = False


# ── Materials ────────────────────────────────────────────────────────────────

@register(NodeKind.MESH_NORMAL_MATERIAL)
class MeshNormalMaterialProperties(NodeProperties):
    wireframe: bool = False
    transparent: bool = False
    opacity: float = Field(default=1.0, ge=0.0, le=1.0)


@register(NodeKind.MESH_BASIC_MATERIAL)
class MeshBasicMaterialProperties(NodeProperties):
    color: str = "#ffffff"
    wireframe: bool = False
    transparent: bool = False
    opacity: float = Field(default=1.0, ge=0.0, le=1.0)
    visible: bool = True
    side: Side = "double"


@register(NodeKind.MESH_PHONG_MATERIAL)
class MeshPhongMaterialProperties(NodeProperties):
    color: str = "#ffffff"
    emissive: str = "#000000"
    specular: str = "#111111"
    shininess: float = 30.0
    wireframe: bool = False
    transparent: bool = False
    opacity: float = Field(default=1.0, ge=0.0, le=1.0)
    visible: bool = True
    side: Side = "double"
    flatShading: bool = False


@register(NodeKind.MESH_STANDARD_MATERIAL)
class MeshStandardMaterialProperties(NodeProperties):
    color: str = "#ffffff"
    roughness: float = Field(default=0.5, ge=0.0, le=1.0)
    metalness: float = Field(default=0.5, ge=0.0, le=1.0)
    wireframe: bool = False
    transparent: bool = False
    opacity: float = Field(default=1.0, ge=0.0, le=1.0)
    visible: bool = True
    side: Side = "front"


# ── Scene objects ────────────────────────────────────────────────────────────

class TransformProperties(NodeProperties):
    position: Vector3 = Field(default_factory=Vector3)
    rotation: Vector3 = Field(default_factory=Vector3)
    scale: Vector3 = Field(default_factory=_unit_scale)


@register(NodeKind.MESH)
class MeshProperties(TransformProperties):
    name: str = "Mesh"


@register(NodeKind.GROUP)
class GroupProperties(TransformProperties):
    name: str = "Group"
    # Derived from inbound edges; only the network writes this list.
    nodes: List[str] = Field(default_factory=list)


@register(NodeKind.SCENE)
class SceneProperties(NodeProperties):
    backgroundColor: str = "#ffffff"
    ambientLightIntensity: float = Field(default=0.5, ge=0.0)
    pointLightIntensity: float = Field(default=1.0, ge=0.0)
    pointLightPosition: Vector3 = Field(default_factory=Vector3)
    showAxesHelper: bool = False
    showGridHelper: bool = False


# ── Boolean operations ───────────────────────────────────────────────────────

@register(NodeKind.UNION)
class UnionProperties(NodeProperties):
    pass


@register(NodeKind.SUBTRACT)
class SubtractProperties(NodeProperties):
    pass


# ── Utilities ────────────────────────────────────────────────────────────────

@register(NodeKind.LOOP)
class LoopProperties(TransformProperties):
    iterations: int = Field(default=1, ge=1)
    spacing: float = 2.0
    direction: Literal["x", "y", "z"] = "x"
    nodes: List[str] = Field(default_factory=list)


class BulkEditTarget(BaseModel):
    nodeId: str
    field: str


@register(NodeKind.BULK_EDIT)
class BulkEditProperties(NodeProperties):
    value: float = 0.0
    connectedInputs: List[BulkEditTarget] = Field(default_factory=list)
