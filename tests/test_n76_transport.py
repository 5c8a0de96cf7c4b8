"""Tests for the pyserial-backed transport (serial.Serial is mocked)."""

from unittest.mock import MagicMock, patch

import pytest
import serial

from n76_flasher.protocol.n76_transport import (
    DeviceError,
    N76Transport,
    TimeoutMode,
    TransportError,
)


@pytest.fixture
def mock_serial():
    with patch("n76_flasher.protocol.n76_transport.serial.Serial") as serial_cls:
        port = MagicMock()
        port.is_open = True
        port.write.side_effect = lambda data: len(data)
        serial_cls.return_value = port
        yield serial_cls, port


def test_open_uses_19200_8n1_without_flow_control(mock_serial):
    serial_cls, _ = mock_serial

    transport = N76Transport("/dev/ttyUSB0")
    transport.open()

    kwargs = serial_cls.call_args.kwargs
    assert kwargs["port"] == "/dev/ttyUSB0"
    assert kwargs["baudrate"] == 19200
    assert kwargs["bytesize"] == serial.EIGHTBITS
    assert kwargs["parity"] == serial.PARITY_NONE
    assert kwargs["stopbits"] == serial.STOPBITS_ONE
    assert kwargs["timeout"] == 1.0
    assert kwargs["xonxoff"] is False
    assert kwargs["rtscts"] is False
    assert kwargs["dsrdtr"] is False
    assert transport.mode is TimeoutMode.HANDSHAKE


def test_open_failure_raises_device_error(mock_serial):
    serial_cls, _ = mock_serial
    serial_cls.side_effect = serial.SerialException("Permission denied")

    transport = N76Transport("/dev/ttyUSB9")
    with pytest.raises(DeviceError) as excinfo:
        transport.open()
    assert "chmod o+rw /dev/ttyUSB9" in str(excinfo.value)
    assert not transport.is_open


def test_configure_switches_timeout(mock_serial):
    _, port = mock_serial
    transport = N76Transport("/dev/ttyUSB0", handshake_timeout=0.5)
    transport.open()

    transport.configure(TimeoutMode.STREAMING)
    assert port.timeout is None
    assert transport.mode is TimeoutMode.STREAMING

    transport.configure(TimeoutMode.HANDSHAKE)
    assert port.timeout == 0.5


def test_write_and_read_byte(mock_serial):
    _, port = mock_serial
    port.read.return_value = b"\x06"
    transport = N76Transport("/dev/ttyUSB0")
    transport.open()

    transport.write(b"\x01")
    assert port.write.call_args.args[0] == b"\x01"
    assert transport.read_byte() == 0x06
    port.read.assert_called_with(1)


def test_read_byte_timeout_returns_none(mock_serial):
    _, port = mock_serial
    port.read.return_value = b""
    transport = N76Transport("/dev/ttyUSB0")
    transport.open()

    assert transport.read_byte() is None


def test_short_write_raises(mock_serial):
    _, port = mock_serial
    port.write.side_effect = lambda data: len(data) - 1
    transport = N76Transport("/dev/ttyUSB0")
    transport.open()

    with pytest.raises(TransportError):
        transport.write(b"\x1a\x7f")


def test_serial_errors_wrapped(mock_serial):
    _, port = mock_serial
    port.read.side_effect = serial.SerialException("device disconnected")
    transport = N76Transport("/dev/ttyUSB0")
    transport.open()

    with pytest.raises(TransportError):
        transport.read_byte()


def test_flush_input(mock_serial):
    _, port = mock_serial
    transport = N76Transport("/dev/ttyUSB0")
    transport.open()

    transport.flush_input()
    port.reset_input_buffer.assert_called_once()


def test_operations_require_open_port():
    transport = N76Transport("/dev/ttyUSB0")
    with pytest.raises(TransportError):
        transport.write(b"\x01")
    with pytest.raises(TransportError):
        transport.read_byte()


def test_context_manager_closes(mock_serial):
    _, port = mock_serial

    with N76Transport("/dev/ttyUSB0") as transport:
        assert transport.is_open

    port.close.assert_called_once()
    assert not transport.is_open


def test_close_is_idempotent(mock_serial):
    _, port = mock_serial
    transport = N76Transport("/dev/ttyUSB0")
    transport.open()
    transport.close()
    transport.close()
    port.close.assert_called_once()


def test_flush_errors_wrapped(mock_serial):
    _, port = mock_serial
    port.reset_input_buffer.side_effect = serial.SerialException("device unplugged")
    transport = N76Transport("/dev/ttyUSB0")
    transport.open()

    with pytest.raises(TransportError, match="device unplugged"):
        transport.flush_input()


def test_close_errors_wrapped_and_port_released(mock_serial):
    _, port = mock_serial
    port.close.side_effect = OSError("I/O error")
    transport = N76Transport("/dev/ttyUSB0")
    transport.open()

    with pytest.raises(TransportError):
        transport.close()
    assert not transport.is_open
    transport.close()
    port.close.assert_called_once()
