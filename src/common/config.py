"""
Configuration loader for the MCP server.

Loads settings from config.yaml. The only environment variable consulted is
MCP_HTTP_PORT, which overrides the HTTP port.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field

from mcp_core.jsonrpc import SERVER_NAME, SERVER_VERSION

HTTP_PORT_ENV = "MCP_HTTP_PORT"

# Keys accepted under the nested ``logging:`` section of config.yaml
_LOGGING_KEYS = {
    "level": "log_level",
    "enable_pretty_print": "enable_pretty_print",
    "save_to_file": "save_to_file",
    "log_file_path": "log_file_path",
    "max_log_file_size": "max_log_file_size",
    "backup_count": "backup_count",
}


class ServerConfig(BaseModel):
    """Identity reported in initialize and on the HTTP metadata endpoints."""

    name: str = Field(default=SERVER_NAME, description="Server name")
    version: str = Field(default=SERVER_VERSION, description="Server version")


class HTTPConfig(BaseModel):
    """Configuration for the HTTP transport."""

    host: str = Field(default="0.0.0.0", description="Host to bind to")
    port: int = Field(default=8080, description="Port to bind to")


class Config(BaseModel):
    """Main configuration object."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    http: HTTPConfig = Field(default_factory=HTTPConfig)
    log_level: str = Field(default="INFO", description="Logging level")
    enable_pretty_print: bool = Field(
        default=False, description="Enable custom pretty print for debugging"
    )
    save_to_file: bool = Field(default=False, description="Save logs to file")
    log_file_path: str = Field(default="server.log", description="Log file path (relative to root)")
    max_log_file_size: int = Field(
        default=10485760, description="Max log file size in bytes (10MB)"
    )
    backup_count: int = Field(default=5, description="Number of backup log files to keep")


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config.yaml file. Defaults to ./config.yaml

    Returns:
        Loaded configuration object
    """
    if config_path is None:
        config_path = Path("config.yaml")

    config_data: Dict[str, Any] = {}

    # Load from YAML file if it exists
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

    # Handle nested logging configuration
    logging_config = config_data.pop("logging", None) or {}
    for key, field_name in _LOGGING_KEYS.items():
        if key in logging_config:
            config_data[field_name] = logging_config[key]

    port = os.environ.get(HTTP_PORT_ENV)
    if port:
        http_config = dict(config_data.get("http") or {})
        http_config["port"] = port
        config_data["http"] = http_config

    return Config(**config_data)
