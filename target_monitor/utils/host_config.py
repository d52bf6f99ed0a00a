"""
Host-specific settings file selection.

Each machine running the monitor gets its own ``{hostname}-settings.env`` so
that intervals, timeouts and admin credentials can differ per host while the
shared ``settings.env`` stays the template.
"""

import logging
import shutil
import socket
from pathlib import Path

BASE_SETTINGS_FILE = "settings.env"

_HOST_HEADER = """# Host-specific monitor settings for: {hostname}
# Generated from {base}; edit freely for this machine
# ==========================================================

"""


def get_hostname() -> str:
    """Get the current hostname (without domain)."""
    return socket.gethostname().split(".")[0]


def get_hostname_settings_file(base_file: str = BASE_SETTINGS_FILE) -> str:
    """
    Return the settings file this host should load.

    Creates ``{hostname}-settings.env`` from the base file on first use. Falls
    back to the base file name when no template exists or the copy fails.
    """
    try:
        hostname = get_hostname()
        base_settings = Path(base_file)
        host_settings = Path(f"{hostname}-{base_settings.name}")

        if host_settings.exists():
            logging.debug(f"Using existing host-specific configuration: {host_settings}")
            return str(host_settings)

        if not base_settings.exists():
            logging.debug(f"{base_file} not found, using defaults and environment")
            return base_file

        shutil.copy2(base_settings, host_settings)
        content = host_settings.read_text(encoding="utf-8")
        host_settings.write_text(
            _HOST_HEADER.format(hostname=hostname, base=base_file) + content,
            encoding="utf-8",
        )
        logging.info(f"Created host-specific configuration: {host_settings}")
        return str(host_settings)

    except OSError as e:
        logging.error(f"Error handling host-specific settings: {e}")
        return base_file


def list_all_settings_files(base_file: str = BASE_SETTINGS_FILE) -> list[str]:
    """List the base settings file and every host-specific variant present."""
    settings_files = []

    if Path(base_file).exists():
        settings_files.append(base_file)

    for file_path in Path(".").glob(f"*-{base_file}"):
        settings_files.append(str(file_path))

    return settings_files
