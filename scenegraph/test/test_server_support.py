import asyncio
from pathlib import Path

import pytest

from scenegraph.core.SceneNetwork import SceneNetwork
from scenegraph.core.Types import NodeKind, SCENE_NODE_ID
from scenegraph.server.config import Settings
from scenegraph.server.repository import GraphRepository
from scenegraph.server.state import GraphState
from scenegraph.server.trace.socket_server import GRAPH_CHANGE, bind_emitter
from scenegraph.server.trace.trace_emitter import ChangeEmitter


class TestSettings:

    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.graphs_dir == Path("./graphs")
        assert settings.log_level == "INFO"
        assert settings.port == 3001
        assert settings.cors_origins == ["*"]

    def test_overrides(self):
        settings = Settings.from_env({
            "SCENEGRAPH_GRAPHS_DIR": "/tmp/g",
            "SCENEGRAPH_LOG_LEVEL": "debug",
            "SCENEGRAPH_PORT": "8080",
            "SCENEGRAPH_CORS_ORIGINS": "http://a.test, http://b.test",
        })
        assert settings.graphs_dir == Path("/tmp/g")
        assert settings.log_level == "DEBUG"
        assert settings.port == 8080
        assert settings.cors_origins == ["http://a.test", "http://b.test"]

    def test_bad_port_falls_back(self):
        assert Settings.from_env({"SCENEGRAPH_PORT": "lots"}).port == 3001


class TestChangeEmitter:

    def setup_method(self):
        self.emitter = ChangeEmitter()
        self.received = []

    def test_fire_stamps_timestamp(self):
        self.emitter.on_change(self.received.append)
        self.emitter.fire({"type": "NODE_ADDED", "nodeId": "n"})
        assert self.received[0]["ts"] > 0

    def test_failing_listener_is_isolated(self):
        def boom(event):
            raise RuntimeError("down")

        self.emitter.on_change(boom)
        self.emitter.on_change(self.received.append)
        self.emitter.fire({"type": "NODE_REMOVED", "nodeId": "n"})
        assert len(self.received) == 1

    def test_remove_listener(self):
        self.emitter.on_change(self.received.append)
        self.emitter.remove_listener(self.received.append)
        self.emitter.fire({"type": "NODE_REMOVED", "nodeId": "n"})
        assert self.received == []


class TestGraphState:

    @pytest.fixture
    def state(self, tmp_path):
        self.events = []
        emitter = ChangeEmitter()
        emitter.on_change(self.events.append)
        return GraphState(GraphRepository(tmp_path), emitter)

    def test_mutations_reach_emitter(self, state):
        state.network.add_node(NodeKind.MESH)
        assert self.events[-1]["type"] == "NODE_ADDED"

    def test_save_then_load(self, state):
        mesh = state.network.add_node(NodeKind.MESH)
        state.network.connect(mesh.id, SCENE_NODE_ID)
        state.save("scene-one")
        assert state.name == "scene-one"

        state.reset()
        assert len(state.network.graph) == 1

        report = state.load("scene-one")
        assert report.clean
        assert state.network.graph.has_node(mesh.id)
        assert self.events[-1] == {"type": "GRAPH_LOADED", "name": "scene-one", "ts": self.events[-1]["ts"]}

    def test_replaced_network_is_detached(self, state):
        old = state.network
        state.replace_network(SceneNetwork(), "fresh")
        count = len(self.events)
        old.add_node(NodeKind.MESH)
        assert len(self.events) == count


class RecordingSocket:
    def __init__(self):
        self.sent = []

    async def emit(self, event, data):
        self.sent.append((event, data))


class TestSocketBroadcast:

    def test_broadcast_tasks_are_held_until_done(self):
        emitter = ChangeEmitter()
        sio = RecordingSocket()
        pending = bind_emitter(sio, emitter)

        async def scenario():
            emitter.fire({"type": "NODE_ADDED", "nodeId": "n", "kind": "mesh"})
            assert len(pending) == 1
            await asyncio.gather(*pending)
            await asyncio.sleep(0)

        asyncio.run(scenario())

        assert pending == set()
        assert sio.sent[0][0] == GRAPH_CHANGE
        assert sio.sent[0][1]["nodeId"] == "n"

    def test_no_running_loop_is_ignored(self):
        emitter = ChangeEmitter()
        sio = RecordingSocket()
        pending = bind_emitter(sio, emitter)
        emitter.fire({"type": "NODE_REMOVED", "nodeId": "n"})
        assert pending == set()
        assert sio.sent == []
