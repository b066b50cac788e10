"""MCP server configuration loading."""

import logging
import sys
from pathlib import Path
from typing import Dict, List, NamedTuple

import yaml

from shared.transport import resolve_server_command

LOGGER = logging.getLogger(__name__)


class ServerLaunch(NamedTuple):
    """How to start one configured server."""

    server_id: str
    command: str
    args: List[str]
    env: Dict[str, str]


def load_mcp_config(config_path: Path) -> dict:
    """
    Load MCP configuration from YAML file.

    Args:
        config_path: Path to mcp_servers.yaml

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid
    """
    if not config_path.exists():
        raise FileNotFoundError(f"MCP config not found: {config_path}")

    with open(config_path) as f:
        config = yaml.safe_load(f)

    if not config:
        return {"servers": {}}

    return config


def server_launches(config: dict) -> List[ServerLaunch]:
    """
    Turn the ``servers`` section into launch specs, skipping disabled servers.

    Raises:
        ValueError: If a server has neither ``script`` nor ``command``
    """
    launches = []
    for server_id, server_cfg in (config.get("servers") or {}).items():
        server_cfg = server_cfg or {}
        if not server_cfg.get("enabled", True):
            LOGGER.debug(f"  Skipping disabled MCP server: {server_id}")
            continue

        if server_cfg.get("script"):
            command, args = resolve_server_command(server_cfg["script"])
        elif server_cfg.get("command"):
            command = server_cfg["command"]
            if command in ("python", "python3"):
                command = sys.executable
            args = [str(arg) for arg in server_cfg.get("args", [])]
        else:
            raise ValueError(f"MCP server '{server_id}' needs either 'script' or 'command'")

        env = {key: str(value) for key, value in (server_cfg.get("env") or {}).items()}
        launches.append(ServerLaunch(server_id, command, args, env))

    return launches
