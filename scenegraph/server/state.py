"""
GraphState: the single editing session the HTTP routes operate on.

Holds the current SceneNetwork, the name it was loaded from, and the lock that
serializes every mutation. Change events from the network are forwarded to a
ChangeEmitter so connected clients can re-resolve the scene.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from scenegraph.core.SceneNetwork import SceneNetwork
from scenegraph.core.Types import DEFAULT_GRAPH_NAME
from scenegraph.server.repository import GraphRepository
from scenegraph.server.serializers.graph_serializer import LoadReport, deserialize_graph, serialize_graph
from scenegraph.server.trace.trace_emitter import ChangeEmitter, global_emitter

logger = logging.getLogger(__name__)


class GraphState:
    """Holds the current network and the repository it is saved to."""

    def __init__(self,
                 repository: GraphRepository,
                 emitter: Optional[ChangeEmitter] = None) -> None:
        self.repository = repository
        self.emitter = emitter if emitter is not None else global_emitter
        self.lock = asyncio.Lock()
        self.name: str = DEFAULT_GRAPH_NAME
        self.network: SceneNetwork = self._attach(SceneNetwork())

    # ── Session ─────────────────────────────────────────────────────────────

    def _attach(self, network: SceneNetwork) -> SceneNetwork:
        network.on_change = self.emitter.fire
        return network

    def replace_network(self, network: SceneNetwork, name: str) -> None:
        if self.network is not None:
            self.network.on_change = None
        self.network = self._attach(network)
        self.name = name
        self.emitter.fire({"type": "GRAPH_LOADED", "name": name})

    def document(self) -> Dict[str, Any]:
        return serialize_graph(self.network)

    # ── Repository ──────────────────────────────────────────────────────────

    def load(self, name: str) -> LoadReport:
        """Replace the session graph with the stored graph *name*."""
        result = deserialize_graph(self.repository.load(name))
        self.replace_network(result.network, name)
        logger.info("Loaded graph '%s' (%d skipped, %d repaired)",
                    name, len(result.report.skipped), len(result.report.repaired))
        return result.report

    def save(self, name: str, document: Optional[Dict[str, Any]] = None, overwrite: bool = False) -> None:
        """Store *document*, or the session graph when none is given."""
        self.repository.save(name, document if document is not None else self.document(), overwrite)
        if document is None:
            self.name = name

    def reset(self) -> None:
        self.replace_network(SceneNetwork(), DEFAULT_GRAPH_NAME)
