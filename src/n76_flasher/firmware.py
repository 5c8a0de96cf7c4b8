"""
Firmware image loading.

Images are raw binaries (.bin) mapped from address 0 of APROM.
"""

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from n76_flasher.protocol.framing import BLOCK_SIZE, block_count, split_blocks

logger = logging.getLogger(__name__)


class FirmwareFileError(OSError):
    """Firmware file missing, unreadable or empty."""


@dataclass(frozen=True)
class FirmwareImage:
    """Immutable firmware bytes plus where they came from."""

    data: bytes
    source: str = ""

    def __len__(self) -> int:
        return len(self.data)

    @property
    def block_count(self) -> int:
        return block_count(len(self.data))

    @property
    def padding(self) -> int:
        """Number of 0xFF bytes appended to the final block."""
        remainder = len(self.data) % BLOCK_SIZE
        return BLOCK_SIZE - remainder if remainder else 0

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.data).hexdigest()

    def blocks(self) -> List[bytes]:
        return split_blocks(self.data)


def load_firmware(path: Union[str, Path]) -> FirmwareImage:
    """
    Read a firmware binary.

    Args:
        path: Path to the .bin file

    Returns:
        FirmwareImage with the file contents

    Raises:
        FirmwareFileError: If the file cannot be read or is empty
    """
    path = Path(path)
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise FirmwareFileError(
            f"Error opening the specified file {path}: {e.strerror or e}"
        ) from e

    if not data:
        raise FirmwareFileError(f"Firmware file is empty: {path}")

    image = FirmwareImage(data=data, source=str(path))
    logger.info(f"File: {path} (size: {len(data)} bytes, {image.block_count} blocks)")
    return image
