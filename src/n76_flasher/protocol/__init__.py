"""Bootloader protocol layer - transport, framing, checksum and flash engine."""

from .checksum import dallas_crc8
from .n76_transport import (
    N76Transport,
    TransportError,
    DeviceError,
    TimeoutMode,
    BAUD_RATE,
)
from .framing import (
    Response,
    ResponseKind,
    build_probe_frame,
    build_erase_frame,
    build_data_frame,
    build_terminate_frame,
    classify_response,
    split_blocks,
    BLOCK_SIZE,
)
from .flash_protocol import (
    N76Flasher,
    FlasherConfig,
    FlashSession,
    SessionState,
    FailureReason,
    FlashProtocolError,
    ProtocolTimeoutError,
    ProtocolNackError,
    UnexpectedResponseError,
    FlashCancelledError,
    DEFAULT_MAX_TRIES,
)

__all__ = [
    # Checksum
    "dallas_crc8",
    # Transport
    "N76Transport",
    "TransportError",
    "DeviceError",
    "TimeoutMode",
    "BAUD_RATE",
    # Framing
    "Response",
    "ResponseKind",
    "build_probe_frame",
    "build_erase_frame",
    "build_data_frame",
    "build_terminate_frame",
    "classify_response",
    "split_blocks",
    "BLOCK_SIZE",
    # Flash engine
    "N76Flasher",
    "FlasherConfig",
    "FlashSession",
    "SessionState",
    "FailureReason",
    "FlashProtocolError",
    "ProtocolTimeoutError",
    "ProtocolNackError",
    "UnexpectedResponseError",
    "FlashCancelledError",
    "DEFAULT_MAX_TRIES",
]
