import json

import pytest

from scenegraph.core.Errors import AlreadyExists, Forbidden, InvalidName, NotFound
from scenegraph.core.SceneNetwork import SceneNetwork
from scenegraph.core.Types import NodeKind, SCENE_NODE_ID
from scenegraph.server.repository import GraphRepository
from scenegraph.server.serializers.graph_serializer import empty_document, serialize_graph


@pytest.fixture
def repo(tmp_path):
    return GraphRepository(tmp_path / "graphs")


@pytest.fixture
def document():
    net = SceneNetwork()
    mesh = net.add_node(NodeKind.MESH)
    net.connect(mesh.id, SCENE_NODE_ID)
    return serialize_graph(net)


class TestGraphRepository:

    def test_list_always_has_default(self, repo):
        graphs = repo.list()
        assert list(graphs) == ["default"]
        assert graphs["default"] == empty_document()

    def test_save_and_load(self, repo, document):
        repo.save("mine", document)
        assert (repo.directory / "mine.json").is_file()
        assert repo.load("mine") == document
        assert repo.list()["mine"] == document

    def test_save_default_is_forbidden(self, repo, document):
        with pytest.raises(Forbidden):
            repo.save("default", document, overwrite=True)
        assert repo.list()["default"] == empty_document()
        assert not (repo.directory / "default.json").exists()

    def test_save_existing_needs_overwrite(self, repo, document):
        repo.save("mine", empty_document())
        with pytest.raises(AlreadyExists):
            repo.save("mine", document)
        assert repo.load("mine") == empty_document()

        repo.save("mine", document, overwrite=True)
        assert repo.load("mine") == document

    def test_delete(self, repo, document):
        repo.save("mine", document)
        repo.delete("mine")
        assert "mine" not in repo.list()
        with pytest.raises(NotFound):
            repo.delete("mine")

    def test_delete_default_is_forbidden(self, repo):
        with pytest.raises(Forbidden):
            repo.delete("default")

    def test_load_missing(self, repo):
        with pytest.raises(NotFound):
            repo.load("nothing")
        assert repo.load("default") == empty_document()

    @pytest.mark.parametrize("name", ["", "   ", "../escape", "a/b", "a\\b", ".hidden"])
    def test_invalid_names(self, repo, document, name):
        with pytest.raises(InvalidName):
            repo.save(name, document)

    def test_unreadable_files_are_skipped(self, repo, document):
        repo.save("good", document)
        (repo.directory / "broken.json").write_text("{not json", encoding="utf-8")
        (repo.directory / "default.json").write_text(json.dumps({"nodes": [], "edges": []}), encoding="utf-8")

        graphs = repo.list()
        assert sorted(graphs) == ["default", "good"]
        assert graphs["default"] == empty_document()
