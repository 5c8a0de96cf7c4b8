"""
N76 Bootloader Framing

Frame shapes used by the N76E003 / MS51 serial bootloader:

    PROBE:      [ 0x01 ]
    ERASE:      [ 0x1A | 0x7F ]
    DATA:       [ 0x02 | payload (16 bytes) | crc8 | 0x03 ]
    TERMINATE:  [ 0x04 ]

The device answers every frame with a single byte, ACK (0x06) or NACK (0x15).
Nothing in this module performs I/O.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .checksum import dallas_crc8

# Command alphabet (ASCII control characters)
CMD_PROBE = 0x01       # SOH: are you there?
CMD_DATA_START = 0x02  # STX
CMD_DATA_END = 0x03    # ETX
CMD_TERMINATE = 0x04   # EOT: soft reset
CMD_ACK = 0x06
CMD_NACK = 0x15
CMD_ERASE_A = 0x1A     # SUB
CMD_ERASE_B = 0x7F     # DEL

BLOCK_SIZE = 16
PAD_BYTE = 0xFF
DATA_FRAME_SIZE = BLOCK_SIZE + 3


class ResponseKind(Enum):
    """Classification of a single response byte."""
    ACK = "ack"
    NACK = "nack"
    SPURIOUS = "spurious"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class Response:
    """A classified response byte from the bootloader."""

    kind: ResponseKind
    raw: Optional[int] = None

    @property
    def is_ack(self) -> bool:
        return self.kind is ResponseKind.ACK

    def describe(self) -> str:
        if self.kind is ResponseKind.TIMEOUT:
            return "no response"
        return f"{self.kind.value} (0x{self.raw:02X})"


def build_probe_frame() -> bytes:
    """Build the handshake probe frame."""
    return bytes([CMD_PROBE])


def build_erase_frame() -> bytes:
    """Build the program-memory erase frame."""
    return bytes([CMD_ERASE_A, CMD_ERASE_B])


def build_data_frame(block: bytes) -> bytes:
    """
    Build a data frame for one block.

    Args:
        block: Exactly BLOCK_SIZE payload bytes (already padded)

    Returns:
        19-byte frame: STX + block + crc8(block) + ETX

    Raises:
        ValueError: If block is not BLOCK_SIZE bytes long
    """
    if len(block) != BLOCK_SIZE:
        raise ValueError(f"Data block must be {BLOCK_SIZE} bytes, got {len(block)}")

    frame = bytearray([CMD_DATA_START])
    frame.extend(block)
    frame.append(dallas_crc8(block))
    frame.append(CMD_DATA_END)
    return bytes(frame)


def build_terminate_frame() -> bytes:
    """Build the terminate (soft reset) frame."""
    return bytes([CMD_TERMINATE])


def block_count(length: int) -> int:
    """Number of BLOCK_SIZE blocks needed to carry `length` bytes."""
    return (length + BLOCK_SIZE - 1) // BLOCK_SIZE


def split_blocks(image_data: bytes) -> List[bytes]:
    """
    Split an image into BLOCK_SIZE blocks.

    The final block is right-padded with 0xFF. An image whose length is
    a multiple of BLOCK_SIZE gets no extra padding block.
    """
    blocks: List[bytes] = []
    for offset in range(0, len(image_data), BLOCK_SIZE):
        block = image_data[offset:offset + BLOCK_SIZE]
        if len(block) < BLOCK_SIZE:
            block = block + bytes([PAD_BYTE]) * (BLOCK_SIZE - len(block))
        blocks.append(block)
    return blocks


def classify_response(byte: Optional[int]) -> Response:
    """
    Classify one byte read from the bootloader.

    None (read timeout) and 0x00 both count as TIMEOUT: the bootloader
    never sends a zero byte on its own, so it is treated as silence.
    Any other byte that is neither ACK nor NACK is SPURIOUS.
    """
    if byte is None or byte == 0x00:
        return Response(ResponseKind.TIMEOUT, byte)
    if byte == CMD_ACK:
        return Response(ResponseKind.ACK, byte)
    if byte == CMD_NACK:
        return Response(ResponseKind.NACK, byte)
    return Response(ResponseKind.SPURIOUS, byte)
