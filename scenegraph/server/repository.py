"""
GraphRepository: named GraphDocuments stored as JSON files in one directory.

    <graphs_dir>/<name>.json

The name "default" is reserved: it is always listed (a document holding only
the scene node) and can never be written or deleted.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Union

from scenegraph.core.Errors import AlreadyExists, Forbidden, InvalidName, NotFound, RepositoryError
from scenegraph.core.Types import DEFAULT_GRAPH_NAME
from scenegraph.server.serializers.graph_serializer import empty_document

logger = logging.getLogger(__name__)

GraphDocument = Dict[str, Any]


class GraphRepository:
    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _ensure_dir(self) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.exception("Cannot create graphs directory %s", self.directory)
            raise RepositoryError(f"Graph storage unavailable: {exc}") from exc

    def _path(self, name: str) -> Path:
        if not isinstance(name, str) or not name.strip():
            raise InvalidName("Graph name is required")
        if "/" in name or "\\" in name or name in (".", "..") or name.startswith("."):
            raise InvalidName(f"Invalid graph name '{name}'")
        return self.directory / f"{name}.json"

    @staticmethod
    def _check_writable(name: str) -> None:
        if name == DEFAULT_GRAPH_NAME:
            raise Forbidden(f"The '{DEFAULT_GRAPH_NAME}' graph cannot be modified")

    # ── Public API ───────────────────────────────────────────────────────────

    def list(self) -> Dict[str, GraphDocument]:
        """Every stored graph keyed by name, plus the reserved default graph."""
        graphs: Dict[str, GraphDocument] = {DEFAULT_GRAPH_NAME: empty_document()}
        if not self.directory.is_dir():
            return graphs

        for path in sorted(self.directory.glob("*.json")):
            name = path.stem
            if name == DEFAULT_GRAPH_NAME:
                continue
            try:
                with path.open(encoding="utf-8") as fh:
                    graphs[name] = json.load(fh)
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Skipping unreadable graph file %s: %s", path, exc)
        return graphs

    def load(self, name: str) -> GraphDocument:
        if name == DEFAULT_GRAPH_NAME:
            return empty_document()
        path = self._path(name)
        if not path.is_file():
            raise NotFound(f"Graph '{name}' not found")
        try:
            with path.open(encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            logger.exception("Failed to read graph %s", path)
            raise RepositoryError(f"Failed to read graph '{name}': {exc}") from exc

    def save(self, name: str, document: GraphDocument, overwrite: bool = False) -> None:
        self._check_writable(name)
        path = self._path(name)
        self._ensure_dir()

        if path.exists() and not overwrite:
            raise AlreadyExists(f"Graph '{name}' already exists")

        try:
            payload = json.dumps(document, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise RepositoryError(f"Graph '{name}' is not JSON serialisable: {exc}") from exc

        # Write next to the target and swap in, so a failed write never truncates a stored graph.
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_path, path)
        except OSError as exc:
            logger.exception("Failed to save graph %s", path)
            tmp_path.unlink(missing_ok=True)
            raise RepositoryError(f"Failed to save graph '{name}': {exc}") from exc
        logger.info("Saved graph '%s' (%s)", name, "overwrite" if overwrite else "new")

    def delete(self, name: str) -> None:
        self._check_writable(name)
        path = self._path(name)
        if not path.is_file():
            raise NotFound(f"Graph '{name}' not found")
        try:
            path.unlink()
        except OSError as exc:
            logger.exception("Failed to delete graph %s", path)
            raise RepositoryError(f"Failed to delete graph '{name}': {exc}") from exc
        logger.info("Deleted graph '%s'", name)
