"""
ChangeEmitter: fan-out of graph change events to registered listeners
(the Socket.IO broadcaster, loggers, tests).
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List

from .trace_types import CHANGE_EVENT_TYPES

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], None]


class ChangeEmitter:
    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # Listener registration
    # ------------------------------------------------------------------

    def on_change(self, callback: Listener) -> None:
        """Register a callback that receives every emitted change event."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Listener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ------------------------------------------------------------------
    # Emit
    # ------------------------------------------------------------------

    def fire(self, payload: Dict[str, Any]) -> None:
        """Stamp the payload with a millisecond timestamp and broadcast it."""
        if payload.get("type") not in CHANGE_EVENT_TYPES:
            logger.warning("Emitting unknown change event type %r", payload.get("type"))
        if "ts" not in payload:
            payload["ts"] = _now_ms()
        for cb in list(self._listeners):
            try:
                cb(payload)
            except Exception:
                logger.exception("Change listener %r failed on %s", cb, payload.get("type"))


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

global_emitter = ChangeEmitter()


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def _now_ms() -> int:
    return int(time.time() * 1000)
