"""
Centralized configuration for the allocation engine.

Every value can be overridden via environment variables.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

ENV_DATA_DIR = "ALLOCATION_DATA_DIR"
ENV_LOG_LEVEL = "ALLOCATION_LOG_LEVEL"
ENV_MCP_TRANSPORT = "ALLOCATION_MCP_TRANSPORT"

LOG_LEVEL: str = os.environ.get(ENV_LOG_LEVEL, "WARNING").upper()
"""Root log level for the MCP server process."""

MCP_TRANSPORT: str = os.environ.get(ENV_MCP_TRANSPORT, "stdio")
"""FastMCP transport: stdio, sse or streamable-http."""

MCP_SERVER_NAME: str = "ProjectAllocationManager"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def data_dir() -> Path:
    """
    Directory holding engineers.json, projects.json and allocations.json.

    Resolution order:
    1. ALLOCATION_DATA_DIR env var
    2. ./data relative to the working directory
    """
    if os.environ.get(ENV_DATA_DIR):
        return Path(os.environ[ENV_DATA_DIR]).expanduser().resolve()
    return (Path.cwd() / "data").resolve()


def log_level() -> int:
    """LOG_LEVEL as a logging constant. Unknown names fall back to WARNING."""
    level = logging.getLevelName(LOG_LEVEL)
    if isinstance(level, int):
        return level
    return logging.WARNING
