import pytest

from scenegraph.core.Errors import MalformedGraph
from scenegraph.core.GraphPrimitives import Edge, Graph, SceneNode
from scenegraph.core.SceneNetwork import SceneNetwork
from scenegraph.core.SceneResolver import (
    Incomplete,
    ResolvedGroup,
    ResolvedMesh,
    ResolvedOperation,
    dependency_order,
    resolve_scene,
)
from scenegraph.core.Types import NodeKind, SCENE_NODE_ID


def build_box_mesh(net: SceneNetwork):
    box = net.add_node(NodeKind.BOX_GEOMETRY, node_id="box")
    mat = net.add_node(NodeKind.MESH_NORMAL_MATERIAL, node_id="mat")
    mesh = net.add_node(NodeKind.MESH, node_id="mesh")
    net.connect(box.id, mesh.id, "geometry")
    net.connect(mat.id, mesh.id, "material")
    net.connect(mesh.id, SCENE_NODE_ID)
    return box, mat, mesh


class TestSceneResolver:

    def setup_method(self):
        self.net = SceneNetwork()

    def test_empty_scene(self):
        tree = resolve_scene(self.net.graph)
        assert tree.id == SCENE_NODE_ID
        assert tree.children == []
        assert tree.properties["ambientLightIntensity"] == 0.5

    def test_box_mesh_scenario(self):
        build_box_mesh(self.net)
        tree = resolve_scene(self.net.graph)

        assert len(tree.children) == 1
        mesh = tree.children[0]
        assert isinstance(mesh, ResolvedMesh)
        assert mesh.complete
        assert mesh.geometry.kind == "boxGeometry"
        assert mesh.geometry.properties == {"width": 1.0, "height": 1.0, "depth": 1.0}
        assert mesh.material.kind == "meshNormalMaterial"

    def test_sphere_replaces_box(self):
        build_box_mesh(self.net)
        sphere = self.net.add_node(NodeKind.SPHERE_GEOMETRY)
        self.net.connect(sphere.id, "mesh", "geometry")

        assert self.net.graph.get_edge("box→mesh:geometry") is None
        mesh = resolve_scene(self.net.graph).children[0]
        assert mesh.geometry.id == sphere.id
        assert mesh.geometry.properties["radius"] == 1.0

    def test_incomplete_mesh(self):
        mesh = self.net.add_node(NodeKind.MESH)
        self.net.connect(mesh.id, SCENE_NODE_ID)
        resolved = resolve_scene(self.net.graph).children[0]
        assert resolved.geometry is None
        assert resolved.material is None
        assert resolved.to_dict()["complete"] is False

    def test_operation_with_missing_input(self):
        mesh = self.net.add_node(NodeKind.MESH)
        union = self.net.add_node(NodeKind.UNION)
        self.net.connect(mesh.id, union.id, "meshA")
        self.net.connect(union.id, SCENE_NODE_ID)

        resolved = resolve_scene(self.net.graph).children[0]
        assert isinstance(resolved, Incomplete)
        assert resolved.missing == ["meshB"]

    def test_complete_operation(self):
        a = self.net.add_node(NodeKind.MESH)
        b = self.net.add_node(NodeKind.MESH)
        subtract = self.net.add_node(NodeKind.SUBTRACT)
        self.net.connect(b.id, subtract.id, "meshB")
        self.net.connect(a.id, subtract.id, "meshA")
        self.net.connect(subtract.id, SCENE_NODE_ID)

        resolved = resolve_scene(self.net.graph).children[0]
        assert isinstance(resolved, ResolvedOperation)
        assert resolved.mesh_a.id == a.id
        assert resolved.mesh_b.id == b.id
        assert resolved.to_dict()["meshA"]["id"] == a.id

    def test_nested_groups_keep_edge_order(self):
        outer = self.net.add_node(NodeKind.GROUP, node_id="outer")
        inner = self.net.add_node(NodeKind.GROUP, node_id="inner")
        m1 = self.net.add_node(NodeKind.MESH, node_id="m1")
        m2 = self.net.add_node(NodeKind.MESH, node_id="m2")
        self.net.connect(m2.id, inner.id)
        self.net.connect(m1.id, inner.id)
        self.net.connect(inner.id, outer.id)
        self.net.connect(outer.id, SCENE_NODE_ID)

        tree = resolve_scene(self.net.graph)
        group = tree.children[0]
        assert isinstance(group, ResolvedGroup)
        assert group.id == "outer"
        assert [c.id for c in group.children[0].children] == ["m2", "m1"]
        assert "nodes" not in group.children[0].properties

    def test_disconnected_nodes_are_not_rendered(self):
        build_box_mesh(self.net)
        self.net.add_node(NodeKind.MESH)
        assert len(resolve_scene(self.net.graph).children) == 1

    def test_resolve_does_not_mutate(self):
        build_box_mesh(self.net)
        tree = resolve_scene(self.net.graph)
        tree.children[0].properties["name"] = "changed"
        assert self.net.get_node("mesh").properties["name"] == "Mesh"


class TestMalformedGraphs:
    """Graphs built directly on the store, bypassing the network's checks."""

    def setup_method(self):
        self.graph = Graph()
        self.graph.add_node(SceneNode(SCENE_NODE_ID, NodeKind.SCENE))

    def test_missing_scene(self):
        with pytest.raises(MalformedGraph):
            resolve_scene(Graph())
        with pytest.raises(MalformedGraph):
            dependency_order(Graph())

    def test_overfull_slot(self):
        self.graph.add_node(SceneNode("mesh", NodeKind.MESH))
        self.graph.add_node(SceneNode("box", NodeKind.BOX_GEOMETRY))
        self.graph.add_node(SceneNode("ball", NodeKind.SPHERE_GEOMETRY))
        self.graph.add_edge(Edge.create("box", "mesh", "geometry"))
        self.graph.add_edge(Edge.create("ball", "mesh", "geometry"))
        self.graph.add_edge(Edge.create("mesh", SCENE_NODE_ID))

        with pytest.raises(MalformedGraph):
            resolve_scene(self.graph)

    def test_container_cycle(self):
        self.graph.add_node(SceneNode("g1", NodeKind.GROUP))
        self.graph.add_node(SceneNode("g2", NodeKind.GROUP))
        self.graph.add_edge(Edge.create("g1", "g2"))
        self.graph.add_edge(Edge.create("g2", "g1"))
        self.graph.add_edge(Edge.create("g1", SCENE_NODE_ID))

        with pytest.raises(MalformedGraph):
            resolve_scene(self.graph)
        with pytest.raises(MalformedGraph):
            dependency_order(self.graph)

    def test_wrong_kind_in_slot(self):
        self.graph.add_node(SceneNode("mesh", NodeKind.MESH))
        self.graph.add_node(SceneNode("mat", NodeKind.MESH_BASIC_MATERIAL))
        self.graph.add_edge(Edge.create("mat", "mesh", "geometry"))
        self.graph.add_edge(Edge.create("mesh", SCENE_NODE_ID))

        with pytest.raises(MalformedGraph):
            resolve_scene(self.graph)


class TestDependencyOrder:

    def setup_method(self):
        self.net = SceneNetwork()

    def test_leaves_first_scene_last(self):
        build_box_mesh(self.net)
        assert dependency_order(self.net.graph) == ["box", "mat", "mesh", SCENE_NODE_ID]

    def test_only_scene(self):
        assert dependency_order(self.net.graph) == [SCENE_NODE_ID]

    def test_shared_input_listed_once(self):
        mesh = self.net.add_node(NodeKind.MESH, node_id="m")
        union = self.net.add_node(NodeKind.UNION, node_id="u")
        self.net.connect(mesh.id, union.id, "meshA")
        self.net.connect(mesh.id, union.id, "meshB")
        self.net.connect(union.id, SCENE_NODE_ID)
        self.net.connect(mesh.id, SCENE_NODE_ID)

        order = dependency_order(self.net.graph)
        assert order == ["m", "u", SCENE_NODE_ID]

    def test_every_node_after_its_inputs(self):
        build_box_mesh(self.net)
        group = self.net.add_node(NodeKind.GROUP, node_id="g")
        other = self.net.add_node(NodeKind.MESH, node_id="other")
        self.net.connect(other.id, group.id)
        self.net.connect(group.id, SCENE_NODE_ID)

        order = dependency_order(self.net.graph)
        position = {node_id: i for i, node_id in enumerate(order)}
        for edge in self.net.graph.edges.values():
            assert position[edge.source] < position[edge.target]
