"""
Dallas/Maxim CRC8

The N76 bootloader verifies every 16-byte data block against this
checksum. Seed 0, reflected polynomial 0x8C, bits consumed LSB first.
"""


def dallas_crc8(data: bytes) -> int:
    """
    Calculate the Dallas/Maxim (1-Wire) CRC8 of a byte buffer.

    Args:
        data: Bytes to checksum

    Returns:
        8-bit CRC value
    """
    crc = 0
    for byte in data:
        for _ in range(8):
            mix = (crc ^ byte) & 0x01
            crc >>= 1
            if mix:
                crc ^= 0x8C
            byte >>= 1
    return crc
