"""
N76 Serial Transport Layer

Handles low-level serial communication with the N76E003 / MS51 bootloader.

This module provides:
- Serial port initialization and configuration (19200 8N1, raw, no flow control)
- Bounded (handshake) and unbounded (streaming) read modes
- Single-byte response reads
- Input buffer flushing
"""

import logging
from enum import Enum
from typing import Optional

import serial

logger = logging.getLogger(__name__)

BAUD_RATE = 19200
HANDSHAKE_TIMEOUT = 1.0


class TransportError(Exception):
    """Base exception for transport layer errors"""
    pass


class DeviceError(TransportError):
    """Serial device missing, or could not be opened/configured"""
    pass


class TimeoutMode(Enum):
    """Read timeout policy for the serial line."""
    HANDSHAKE = "handshake"  # return after the handshake timeout or on first byte
    STREAMING = "streaming"  # block until at least one byte arrives


class N76Transport:
    """
    Low-level serial transport for the N76 bootloader.

    Example:
        with N76Transport(port="/dev/ttyUSB0") as transport:
            transport.configure(TimeoutMode.HANDSHAKE)
            transport.write(b"\\x01")
            ack = transport.read_byte()
    """

    def __init__(
        self,
        port: str,
        baudrate: int = BAUD_RATE,
        handshake_timeout: float = HANDSHAKE_TIMEOUT,
    ):
        """
        Initialize transport layer.

        Args:
            port: Serial port (e.g., "/dev/ttyUSB0")
            baudrate: Serial baud rate (default 19200)
            handshake_timeout: Read timeout in HANDSHAKE mode, seconds (default 1.0)
        """
        self.port = port
        self.baudrate = baudrate
        self.handshake_timeout = handshake_timeout
        self.mode = TimeoutMode.HANDSHAKE
        self.ser: Optional[serial.Serial] = None

    def __enter__(self) -> "N76Transport":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self.ser is not None and self.ser.is_open

    def open(self) -> None:
        """
        Open serial port and configure it for the bootloader.

        Raises:
            DeviceError: If port cannot be opened
        """
        try:
            self.ser = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.handshake_timeout,
                xonxoff=False,
                rtscts=False,
                dsrdtr=False,
            )
        except (serial.SerialException, OSError) as e:
            raise DeviceError(
                f"Cannot open port {self.port}: {e}. "
                f"Permission problems are common with serial devices, "
                f"try: sudo chmod o+rw {self.port}"
            ) from e

        self.mode = TimeoutMode.HANDSHAKE
        logger.debug(
            f"Opened {self.port} at {self.baudrate} bps "
            f"(timeout={self.handshake_timeout}s)"
        )

    def close(self) -> None:
        """
        Close serial port.

        Raises:
            TransportError: If the driver fails to release the port
        """
        ser, self.ser = self.ser, None
        if ser is None or not ser.is_open:
            return
        try:
            ser.close()
        except (serial.SerialException, OSError) as e:
            raise TransportError(f"Close error on {self.port}: {e}") from e
        logger.debug(f"Closed {self.port}")

    def _require_open(self) -> serial.Serial:
        if not self.is_open:
            raise TransportError("Serial port not open")
        return self.ser

    def configure(self, mode: TimeoutMode) -> None:
        """
        Switch the read timeout policy.

        Args:
            mode: HANDSHAKE for a bounded read, STREAMING for a blocking read

        Raises:
            DeviceError: If the line settings cannot be applied
        """
        ser = self._require_open()
        timeout = self.handshake_timeout if mode is TimeoutMode.HANDSHAKE else None
        try:
            ser.timeout = timeout
        except (serial.SerialException, ValueError) as e:
            raise DeviceError(f"Cannot configure {self.port}: {e}") from e
        self.mode = mode
        logger.debug(f"Timeout mode {mode.value} (timeout={timeout})")

    def write(self, data: bytes) -> None:
        """
        Send raw bytes to the bootloader.

        Raises:
            TransportError: If write fails
        """
        ser = self._require_open()
        try:
            written = ser.write(data)
            ser.flush()
        except serial.SerialException as e:
            raise TransportError(f"Write error: {e}") from e

        if written != len(data):
            raise TransportError(f"Incomplete write: sent {written}/{len(data)} bytes")
        logger.debug(f">>> {data.hex().upper()}")

    def read_byte(self) -> Optional[int]:
        """
        Read a single response byte.

        Returns:
            The byte value, or None if the read timed out

        Raises:
            TransportError: If read fails
        """
        ser = self._require_open()
        try:
            data = ser.read(1)
        except serial.SerialException as e:
            raise TransportError(f"Read error: {e}") from e

        if not data:
            logger.debug("<<< (timeout)")
            return None
        logger.debug(f"<<< {data.hex().upper()}")
        return data[0]

    def flush_input(self) -> None:
        """
        Discard any received but unread bytes.

        Raises:
            TransportError: If the buffer cannot be flushed
        """
        ser = self._require_open()
        try:
            ser.reset_input_buffer()
        except (serial.SerialException, OSError) as e:
            raise TransportError(f"Flush error: {e}") from e
