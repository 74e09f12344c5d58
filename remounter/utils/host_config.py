"""
Host-specific configuration management utility.

Handles automatic creation and selection of hostname-specific configuration files.
"""

import logging
import shutil
import socket
from pathlib import Path

BASE_SETTINGS_FILE = "settings.env"


def get_hostname_settings_file() -> str:
    """
    Get the appropriate settings file for this host.

    Logic:
    1. Get current hostname
    2. Check if {hostname}-settings.env exists
    3. If not, create it by copying settings.env
    4. Return the hostname-specific file path

    Returns:
        str: Path to the hostname-specific settings file
    """
    try:
        hostname = get_hostname()

        base_settings = Path(BASE_SETTINGS_FILE)
        host_settings = Path(f"{hostname}-settings.env")

        if host_settings.exists():
            logging.debug(f"Using existing host-specific configuration: {host_settings}")
            return str(host_settings)

        if not base_settings.exists():
            return BASE_SETTINGS_FILE

        shutil.copy2(base_settings, host_settings)

        content = host_settings.read_text(encoding="utf-8")
        host_header = (
            f"# Remounter configuration for: {hostname}\n"
            f"# Generated from {BASE_SETTINGS_FILE}, edit freely for this machine\n"
            "\n"
        )
        host_settings.write_text(host_header + content, encoding="utf-8")

        logging.info(f"Created host-specific configuration: {host_settings}")
        return str(host_settings)

    except OSError as e:
        logging.error(f"Error handling host-specific settings: {e}")
        return BASE_SETTINGS_FILE


def list_all_settings_files() -> list[str]:
    """List all available settings files (base + host-specific)."""
    settings_files = []

    if Path(BASE_SETTINGS_FILE).exists():
        settings_files.append(BASE_SETTINGS_FILE)

    for file_path in Path(".").glob("*-settings.env"):
        settings_files.append(str(file_path))

    return settings_files


def get_hostname() -> str:
    """Get the current hostname (without domain)."""
    return socket.gethostname().split(".")[0]
