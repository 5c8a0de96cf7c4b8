"""
Core workflow actions for N76 Flasher.

This module exposes the end-to-end operations the CLI calls. Each returns
an OperationResult instead of raising, and releases the firmware file and
serial port on every exit path.
"""

import logging
from contextlib import contextmanager
from typing import Callable, List, Optional

from n76_flasher.core.discovery import DEFAULT_SEARCH, DEV_DIR, discover_ports
from n76_flasher.core.parsing import resolve_port
from n76_flasher.core.results import OperationResult
from n76_flasher.firmware import FirmwareFileError, load_firmware
from n76_flasher.protocol.flash_protocol import FlasherConfig, N76Flasher, ProgressCallback
from n76_flasher.protocol.n76_transport import DeviceError, N76Transport, TransportError

logger = logging.getLogger(__name__)


class _ListLogHandler(logging.Handler):
    """Capture log records into a list of formatted strings."""

    def __init__(self, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.records: List[str] = []
        self.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(self.format(record))


@contextmanager
def _capture_logs(logger_name: str = "n76_flasher"):
    """Capture logs for core operations into a list."""
    target_logger = logging.getLogger(logger_name)
    handler = _ListLogHandler()
    previous_level = target_logger.level
    if previous_level in (logging.NOTSET, logging.WARNING, logging.ERROR, logging.CRITICAL):
        target_logger.setLevel(logging.INFO)
    target_logger.addHandler(handler)
    try:
        yield handler.records
    finally:
        target_logger.removeHandler(handler)
        target_logger.setLevel(previous_level)


def _release(transport, result: OperationResult) -> None:
    """Close the transport, recording a failed close on the result."""
    try:
        transport.close()
    except TransportError as e:
        logger.debug(f"Release failure: {e}")
        result.add_warning(str(e))


def select_port(
    port: Optional[str] = None,
    search: str = DEFAULT_SEARCH,
    choose: Optional[Callable[[List[str]], str]] = None,
    dev_dir: str = DEV_DIR,
) -> str:
    """
    Decide which serial device to use.

    An explicit `port` bypasses discovery. Otherwise devices named
    `search`* are listed; a single match is used directly, several are
    handed to `choose` for disambiguation.

    Returns:
        Full device path

    Raises:
        DeviceError: If no candidate is found, or several are found and
            no chooser was given
        ConfigError: If the port name is malformed
    """
    if port:
        return resolve_port(port, dev_dir)

    found = discover_ports(search, dev_dir)
    if not found:
        raise DeviceError(f"No available serial port found matching '{search}' in {dev_dir}")

    logger.info(f"Port(s) found: {', '.join(found)}")
    if len(found) == 1:
        name = found[0]
    elif choose is not None:
        name = choose(found)
    else:
        raise DeviceError(
            f"Several ports match '{search}': {', '.join(found)}. Use --port to pick one."
        )

    path = resolve_port(name, dev_dir)
    logger.info(f"Default port: {path}")
    return path


def flash_firmware(
    port: str,
    firmware_path: str,
    config: Optional[FlasherConfig] = None,
    progress_cb: Optional[ProgressCallback] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
    transport_factory: Callable[[str], N76Transport] = N76Transport,
) -> OperationResult:
    """
    Flash a firmware binary through the N76 bootloader.

    Args:
        port: Serial device path
        firmware_path: Path to the raw .bin image
        config: Session tunables (tries, reset on abort)
        progress_cb: Optional callback(blocks_done, total_blocks, percent)
        should_cancel: Optional predicate checked between blocks
        transport_factory: Builds the transport for `port`

    Returns:
        OperationResult with:
            - ok: True if the device acknowledged the final reset
            - bytes_len / blocks: image size and blocks acknowledged
            - hashes["sha256"]: hash of the image
            - metadata["state"], metadata["failure_reason"], metadata["cause"]
    """
    with _capture_logs() as logs:
        result = OperationResult(ok=False, operation="flash_firmware", port=port)
        result.logs = logs

        try:
            image = load_firmware(firmware_path)
        except FirmwareFileError as e:
            result.add_error(str(e))
            result.metadata["cause"] = type(e).__name__
            return result

        result.bytes_len = len(image)
        result.hashes["sha256"] = image.sha256
        result.metadata["total_blocks"] = image.block_count
        if image.padding:
            result.add_warning(f"Final block padded with {image.padding} bytes of 0xFF")

        transport = transport_factory(port)
        try:
            transport.open()
            flasher = N76Flasher(transport, config)
            session = flasher.flash(image.data, progress_cb, should_cancel)
        except TransportError as e:
            logger.debug(f"Transport failure: {e}")
            result.add_error(str(e))
            result.metadata["cause"] = type(e).__name__
            return result
        finally:
            _release(transport, result)

        result.blocks = session.blocks_acked
        result.metadata["state"] = session.state.value
        result.metadata["probes_sent"] = session.probes_sent
        if session.ok:
            result.ok = True
        else:
            result.add_error(session.message)
            result.metadata["failure_reason"] = session.reason.value
            result.metadata["cause"] = session.reason.value
            if session.last_response is not None:
                result.metadata["last_response"] = f"0x{session.last_response:02X}"
        return result
