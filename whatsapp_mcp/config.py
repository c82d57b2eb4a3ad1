"""
Configuration module for the WhatsApp MCP server.

Handles path resolution, logging setup, and configuration loading.
All paths are resolved relative to PROJECT_ROOT so the server works
correctly regardless of the working directory it's started from.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

# MCP servers can be started from arbitrary working directories,
# so we always resolve paths relative to the repository root
PROJECT_ROOT = Path(__file__).parent.parent

DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "mcp_server.json"

DEFAULT_CONFIG: dict[str, Any] = {
    "server_name": "whatsapp-web",
    "version": "1.0.0",
    "session": {
        "client_id": "default",
        "data_path": "~/.whatsapp-mcp/sessions",
    },
    "bridge": {
        "socket_path": "~/.whatsapp-mcp/bridge.sock",
        "timeout": None,
    },
    "paths": {
        "log_dir": "logs",
    },
}

logger = logging.getLogger(__name__)


def resolve_path(path_str: str) -> str:
    """
    Resolve a config path relative to PROJECT_ROOT or expand ~.

    Args:
        path_str: Path string from configuration

    Returns:
        Resolved absolute path as string
    """
    path = Path(path_str)
    if path_str.startswith("~"):
        return str(path.expanduser())
    elif path.is_absolute():
        return str(path)
    else:
        return str(PROJECT_ROOT / path)


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> dict[str, Any]:
    """
    Load the server configuration.

    Precedence (highest first): environment overrides, the JSON config
    file, built-in defaults. CLI flags are applied on top by the caller.

    Args:
        config_path: Optional explicit path to a JSON config file. Falls
            back to $WHATSAPP_MCP_CONFIG, then config/mcp_server.json.

    Returns:
        Merged configuration dict
    """
    path_str = config_path or os.getenv("WHATSAPP_MCP_CONFIG")
    path = Path(resolve_path(path_str)) if path_str else DEFAULT_CONFIG_PATH

    config = copy.deepcopy(DEFAULT_CONFIG)
    if path.exists():
        with open(path) as f:
            config = _merge(config, json.load(f))
    elif path_str:
        # An explicitly requested file that doesn't exist is a user error
        raise FileNotFoundError(f"Config file not found: {path}")

    socket_env = os.getenv("WHATSAPP_MCP_SOCKET")
    if socket_env:
        config["bridge"]["socket_path"] = socket_env

    session_env = os.getenv("WHATSAPP_MCP_SESSION")
    if session_env:
        config["session"]["client_id"] = session_env

    return config


def setup_logging(log_dir: Optional[str] = None, level: int = logging.INFO) -> None:
    """
    Configure root logging with a file handler and a stderr stream handler.

    stdout carries the MCP protocol, so nothing may be logged there.
    """
    log_path = Path(resolve_path(log_dir or DEFAULT_CONFIG["paths"]["log_dir"]))
    log_path.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_path / 'mcp_server.log'),
            logging.StreamHandler()
        ]
    )
