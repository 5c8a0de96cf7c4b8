"""
Serial port discovery.

USB-UART adapters show up as character devices under /dev; candidates are
those whose name starts with a search prefix (default "ttyUSB").
"""

import logging
import os
import stat
from typing import List

logger = logging.getLogger(__name__)

DEV_DIR = "/dev"
DEFAULT_SEARCH = "ttyUSB"


def discover_ports(prefix: str = DEFAULT_SEARCH, dev_dir: str = DEV_DIR) -> List[str]:
    """
    List character devices in `dev_dir` whose names start with `prefix`.

    Returns:
        Sorted device names (without the directory), empty if none match
        or the directory cannot be read.
    """
    try:
        entries = list(os.scandir(dev_dir))
    except OSError as e:
        logger.warning(f"Cannot list {dev_dir}: {e}")
        return []

    found = []
    for entry in entries:
        if not entry.name.startswith(prefix):
            continue
        try:
            mode = entry.stat().st_mode
        except OSError:
            continue
        if stat.S_ISCHR(mode):
            found.append(entry.name)

    found.sort()
    logger.debug(f"Ports matching {prefix!r} in {dev_dir}: {found}")
    return found
