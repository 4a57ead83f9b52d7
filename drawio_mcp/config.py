"""Server configuration, read from DRAWIO_MCP_* environment variables."""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, field_validator

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ServerConfig(BaseModel):
    """Settings for the MCP server process."""
    name: str = "drawio-mcp-server"
    log_level: str = "INFO"
    log_file: Optional[str] = None
    # Default for remove_nodes when the caller does not choose
    cascade_remove: bool = False

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ) -> "ServerConfig":
        """Build a config from environment variables; unset ones keep defaults."""
        values: dict = {}
        if environ.get("DRAWIO_MCP_NAME"):
            values["name"] = environ["DRAWIO_MCP_NAME"]
        if environ.get("DRAWIO_MCP_LOG_LEVEL"):
            values["log_level"] = environ["DRAWIO_MCP_LOG_LEVEL"]
        if environ.get("DRAWIO_MCP_LOG_FILE"):
            values["log_file"] = environ["DRAWIO_MCP_LOG_FILE"]
        if environ.get("DRAWIO_MCP_CASCADE_REMOVE"):
            values["cascade_remove"] = environ["DRAWIO_MCP_CASCADE_REMOVE"].strip().lower() in _TRUE_VALUES
        return cls(**values)
