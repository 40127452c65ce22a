"""
Host-specific configuration file selection.

Lets one checkout serve several backup hosts: each host may keep its own
``<hostname>.env`` next to the shared ``.env``.
"""

import logging
import os
import socket
from pathlib import Path

ENV_FILE_VARIABLE = "NAS_BACKUP_ENV_FILE"
DEFAULT_ENV_FILE = ".env"


def get_hostname() -> str:
    """Get the current hostname (without domain)."""
    return socket.gethostname().split('.')[0]


def get_settings_file(base_dir: Path = Path(".")) -> str:
    """
    Get the env file the configuration should be loaded from.

    Logic:
    1. ``NAS_BACKUP_ENV_FILE`` from the process environment wins
    2. ``{hostname}.env`` in ``base_dir`` if it exists
    3. ``.env`` in ``base_dir`` (may not exist; the loader reports that)

    Returns:
        str: Path to the env file to use
    """
    override = os.environ.get(ENV_FILE_VARIABLE)
    if override:
        logging.debug(f"Using env file from {ENV_FILE_VARIABLE}: {override}")
        return override

    host_settings = base_dir / f"{get_hostname()}.env"
    if host_settings.exists():
        logging.debug(f"Using host-specific configuration: {host_settings}")
        return str(host_settings)

    return str(base_dir / DEFAULT_ENV_FILE)


def list_all_settings_files(base_dir: Path = Path(".")) -> list[str]:
    """
    List all env files present in ``base_dir`` (base + host-specific).

    Returns:
        list[str]: List of settings file paths
    """
    settings_files = []

    if (base_dir / DEFAULT_ENV_FILE).exists():
        settings_files.append(str(base_dir / DEFAULT_ENV_FILE))

    for file_path in sorted(base_dir.glob("*.env")):
        if file_path.name != DEFAULT_ENV_FILE:
            settings_files.append(str(file_path))

    return settings_files
