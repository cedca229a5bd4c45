"""
Server settings, read from the environment.

A `.env` file in the working directory (or any parent) is loaded first, so
local overrides need no manual `export`:

    SCENEGRAPH_GRAPHS_DIR=./graphs
    SCENEGRAPH_LOG_LEVEL=INFO
    SCENEGRAPH_HOST=0.0.0.0
    SCENEGRAPH_PORT=3001
    SCENEGRAPH_CORS_ORIGINS=*
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "SCENEGRAPH_"


def _split_origins(raw: str) -> List[str]:
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


@dataclass
class Settings:
    graphs_dir: Path = Path("./graphs")
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        def get(name: str, default: str) -> str:
            return env.get(ENV_PREFIX + name, default)

        port_raw = get("PORT", "3001")
        try:
            port = int(port_raw)
        except ValueError:
            logger.warning("Ignoring invalid %sPORT=%r, using 3001", ENV_PREFIX, port_raw)
            port = 3001

        return cls(
            graphs_dir=Path(get("GRAPHS_DIR", "./graphs")),
            log_level=get("LOG_LEVEL", "INFO").upper(),
            host=get("HOST", "0.0.0.0"),
            port=port,
            cors_origins=_split_origins(get("CORS_ORIGINS", "*")),
        )


def load_settings() -> Settings:
    """Load `.env` (without overriding real environment variables) and build Settings."""
    load_dotenv(find_dotenv(usecwd=True))
    return Settings.from_env()
