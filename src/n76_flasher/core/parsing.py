"""
Centralized parsing helpers for command-line values.

The CLI imports these helpers rather than re-implementing them.
"""

from pathlib import PurePosixPath
from typing import Optional

from n76_flasher.core.discovery import DEV_DIR


class ConfigError(ValueError):
    """Invalid user-supplied configuration value."""


def parse_tries(value: Optional[str], default: int = 25) -> int:
    """
    Parse the handshake retry count.

    Accepts:
        - Decimal: "25"
        - None or empty for the default

    Raises:
        ConfigError: If value is not a non-negative integer.
    """
    if value is None:
        return default

    value = value.strip()
    if not value:
        return default

    if not value.isdigit():
        raise ConfigError(f"Invalid tries '{value}': tries parameter is not a number.")
    return int(value)


def resolve_port(name: str, dev_dir: str = DEV_DIR) -> str:
    """
    Turn a port name into a device path.

    "ttyUSB0" becomes "/dev/ttyUSB0"; absolute paths are returned unchanged.

    Raises:
        ConfigError: If name is empty or contains a path separator
            without being absolute.
    """
    name = name.strip()
    if not name:
        raise ConfigError("Port name is empty")
    if name.startswith("/"):
        return name
    if "/" in name:
        raise ConfigError(f"Invalid port name '{name}'. Use 'ttyUSB0' or '/dev/ttyUSB0'.")
    return str(PurePosixPath(dev_dir) / name)
