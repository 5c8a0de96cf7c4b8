"""
N76 Flasher - Serial firmware uploader for Nuvoton N76E003 / MS51 bootloaders

Handshake, erase, block-by-block programming with CRC8 and soft reset.
"""

__version__ = "1.0.0"

from n76_flasher.protocol import N76Transport, N76Flasher, FlasherConfig
from n76_flasher.firmware import FirmwareImage, load_firmware

__all__ = [
    "N76Transport",
    "N76Flasher",
    "FlasherConfig",
    "FirmwareImage",
    "load_firmware",
    "__version__",
]
