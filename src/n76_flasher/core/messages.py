"""
Standardized warning and message system for N76 Flasher.

Provides structured message items with stable codes and remediation hints
so every failure is reported the same way.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Dict, TYPE_CHECKING

if TYPE_CHECKING:
    from .results import OperationResult


class MessageLevel(Enum):
    """Severity level for messages."""
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class WarningCode(Enum):
    """Stable codes for known conditions."""
    # Device / connection
    W_DEVICE_NOT_FOUND = "W_DEVICE_NOT_FOUND"
    W_PORT_ACCESS = "W_PORT_ACCESS"
    W_SERIAL_ERROR = "W_SERIAL_ERROR"

    # Firmware file
    W_FILE_UNREADABLE = "W_FILE_UNREADABLE"
    W_DATA_PADDED = "W_DATA_PADDED"

    # Protocol
    W_HANDSHAKE_TIMEOUT = "W_HANDSHAKE_TIMEOUT"
    W_ERASE_REJECTED = "W_ERASE_REJECTED"
    W_PROGRAM_REJECTED = "W_PROGRAM_REJECTED"
    W_UNEXPECTED_RESPONSE = "W_UNEXPECTED_RESPONSE"
    W_RESET_REJECTED = "W_RESET_REJECTED"
    W_CANCELLED = "W_CANCELLED"

    # Generic
    W_UNKNOWN = "W_UNKNOWN"


# Default remediation hints for each code
WARNING_REMEDIATIONS: Dict[WarningCode, str] = {
    WarningCode.W_DEVICE_NOT_FOUND:
        "Check the USB-UART adapter, or pass --port / --search explicitly.",
    WarningCode.W_PORT_ACCESS:
        "Check permissions on the port (sudo chmod o+rw /dev/ttyXXX) "
        "and close other serial terminals.",
    WarningCode.W_SERIAL_ERROR:
        "Connection to the adapter was lost. Check the cable and flash again.",
    WarningCode.W_FILE_UNREADABLE:
        "Check the firmware path and that the file is a non-empty .bin.",
    WarningCode.W_DATA_PADDED:
        "Final block was padded with 0xFF; this is normal for unaligned images.",
    WarningCode.W_HANDSHAKE_TIMEOUT:
        "RESET the microcontroller while connecting, or raise --tries.",
    WarningCode.W_ERASE_REJECTED:
        "Bootloader refused to erase. Power cycle the board and retry.",
    WarningCode.W_PROGRAM_REJECTED:
        "A block failed its CRC check. Check wiring and retry; the chip is "
        "partially programmed.",
    WarningCode.W_UNEXPECTED_RESPONSE:
        "Device sent an unknown byte. Check the baud rate and that the "
        "bootloader is running.",
    WarningCode.W_RESET_REJECTED:
        "Firmware was written but the reset was not acknowledged. "
        "Reset the board manually.",
    WarningCode.W_CANCELLED:
        "Transfer was interrupted; the chip is partially programmed. Flash again.",
    WarningCode.W_UNKNOWN:
        "Run with --verbose for more details.",
}

# FailureReason.value / exception class name → code
_CODES_BY_CAUSE: Dict[str, WarningCode] = {
    "handshake_timeout": WarningCode.W_HANDSHAKE_TIMEOUT,
    "erase_rejected": WarningCode.W_ERASE_REJECTED,
    "program_rejected": WarningCode.W_PROGRAM_REJECTED,
    "unexpected_response": WarningCode.W_UNEXPECTED_RESPONSE,
    "reset_rejected": WarningCode.W_RESET_REJECTED,
    "cancelled": WarningCode.W_CANCELLED,
    "DeviceError": WarningCode.W_PORT_ACCESS,
    "TransportError": WarningCode.W_SERIAL_ERROR,
    "FirmwareFileError": WarningCode.W_FILE_UNREADABLE,
}


@dataclass
class WarningItem:
    """
    Structured message with stable code.

    Attributes:
        level: Severity (INFO, WARN, ERROR)
        code: Stable code for programmatic handling
        title: Short, user-facing title
        remediation: Suggested action to resolve the issue
    """
    level: MessageLevel
    code: WarningCode
    title: str
    remediation: str = ""

    def __post_init__(self):
        if not self.remediation and self.code in WARNING_REMEDIATIONS:
            self.remediation = WARNING_REMEDIATIONS[self.code]


def code_for_cause(cause: str) -> WarningCode:
    """Map a failure reason value or exception class name to a code."""
    return _CODES_BY_CAUSE.get(cause, WarningCode.W_UNKNOWN)


def result_to_warnings(result: "OperationResult") -> List[WarningItem]:
    """
    Convert an OperationResult's warnings and errors to WarningItem list.

    Errors are coded from metadata["cause"], set by core.actions.
    """
    items = []

    for msg in result.warnings:
        code = WarningCode.W_DATA_PADDED if "pad" in msg.lower() else WarningCode.W_UNKNOWN
        items.append(WarningItem(MessageLevel.WARN, code, msg))

    code = code_for_cause(result.metadata.get("cause", ""))
    for err in result.errors:
        items.append(WarningItem(MessageLevel.ERROR, code, err))

    return items
