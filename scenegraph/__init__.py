"""
SceneGraph: node graph model for assembling 3D scenes
=======================================================
Typed nodes (geometries, materials, meshes, groups, boolean operations and a
single scene root) are wired into a directed graph; the scene tree resolver
turns that graph into the ordered tree a renderer draws.

Public API
----------
    from scenegraph import SceneNetwork, resolve_scene

    net = SceneNetwork()
    box = net.add_node("boxGeometry")
    mat = net.add_node("meshNormalMaterial")
    mesh = net.add_node("mesh")
    net.connect(box.id, mesh.id, "geometry")
    net.connect(mat.id, mesh.id, "material")
    net.connect(mesh.id, "scene")

    tree = resolve_scene(net.graph)
"""

from scenegraph.core.ConnectionRules import can_connect
from scenegraph.core.CycleGuard import would_create_cycle
from scenegraph.core import Errors
from scenegraph.core.Errors import *  # noqa: F401,F403
from scenegraph.core.GraphPrimitives import Edge, Graph, SceneNode
from scenegraph.core.SceneNetwork import SceneNetwork
from scenegraph.core.SceneResolver import SceneTree, dependency_order, resolve_scene
from scenegraph.core.Types import DEFAULT_GRAPH_NAME, SCENE_NODE_ID, Handle, NodeCategory, NodeKind

__all__ = [
    "can_connect",
    "would_create_cycle",
    "Edge",
    "Graph",
    "SceneNode",
    "SceneNetwork",
    "SceneTree",
    "resolve_scene",
    "dependency_order",
    "Handle",
    "NodeCategory",
    "NodeKind",
    "SCENE_NODE_ID",
    "DEFAULT_GRAPH_NAME",
]

__all__ += Errors.__all__
