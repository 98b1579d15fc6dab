"""Active connection profile loading."""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from dbbase.constants import CONFIG_ENV_VAR, DEFAULT_CONFIG_FILENAME
from dbbase.database.models import ConnectionProfile
from dbbase.errors import NoActiveConnectionError

logger = logging.getLogger(__name__)


def resolve_config_path(config_path: Optional[Union[str, Path]] = None) -> Path:
    """Pick the active-connection file.

    Priority: explicit path, then ``DBBASE_MCP_CONFIG``, then
    ``active_connection.json`` in the working directory.
    """
    if config_path:
        return Path(config_path)
    env_path = os.environ.get(CONFIG_ENV_VAR, "")
    if env_path:
        return Path(env_path)
    return Path.cwd() / DEFAULT_CONFIG_FILENAME


def load_active_profile(config_path: Optional[Union[str, Path]] = None) -> ConnectionProfile:
    """Load the active connection profile.

    Args:
        config_path: Optional explicit path to the active-connection JSON file

    Returns:
        The active ConnectionProfile

    Raises:
        NoActiveConnectionError: If the file is missing, unreadable or invalid
    """
    path = resolve_config_path(config_path)

    if not path.exists():
        logger.warning(f"Active connection file not found: {path}")
        raise NoActiveConnectionError(
            f"No active connection configured (file not found: {path})\n"
            f"  Hint: Activate a connection in DBBase first, or set {CONFIG_ENV_VAR}"
        )

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to read active connection file {path}: {e}")
        raise NoActiveConnectionError(f"Failed to load active connection from {path}: {e}") from e

    if not isinstance(data, dict):
        raise NoActiveConnectionError(f"Active connection file {path} must contain a JSON object")

    try:
        return ConnectionProfile.from_dict(data)
    except ValueError as e:
        raise NoActiveConnectionError(f"Invalid active connection in {path}: {e}") from e
