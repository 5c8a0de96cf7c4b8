"""
N76 Flash Protocol Implementation

Drives a complete flash session against the N76E003 / MS51 serial
bootloader over an N76Transport (or anything with the same methods).

Protocol sequence:
1. HANDSHAKING: send PROBE (0x01) until ACK, up to max_tries + 1 probes.
   Spurious bytes (application chatter) cause a 200 ms pause and an input
   flush before the next probe; silence retries immediately.
2. ERASING: send 1A 7F → expect ACK
3. PROGRAMMING: switch to blocking reads, send each 16-byte block as
   02 [block] [crc8] 03 → expect ACK per block. NACK aborts the transfer.
4. FINALIZING: send EOT (0x04) → expect ACK, device performs a soft reset

Session states only move forward:

    IDLE → HANDSHAKING → ERASING → PROGRAMMING → FINALIZING → SUCCEEDED
                  ↘            ↘              ↘             ↘
                                    FAILED
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from .framing import (
    ResponseKind,
    block_count,
    build_data_frame,
    build_erase_frame,
    build_probe_frame,
    build_terminate_frame,
    classify_response,
    split_blocks,
)
from .n76_transport import TimeoutMode

logger = logging.getLogger(__name__)

DEFAULT_MAX_TRIES = 25
RETRY_DELAY = 0.2

ProgressCallback = Callable[[int, int, int], None]


class SessionState(Enum):
    """Flash session state."""
    IDLE = "idle"
    HANDSHAKING = "handshaking"
    ERASING = "erasing"
    PROGRAMMING = "programming"
    FINALIZING = "finalizing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureReason(Enum):
    """Why a session ended in FAILED."""
    HANDSHAKE_TIMEOUT = "handshake_timeout"
    ERASE_REJECTED = "erase_rejected"
    PROGRAM_REJECTED = "program_rejected"
    UNEXPECTED_RESPONSE = "unexpected_response"
    RESET_REJECTED = "reset_rejected"
    CANCELLED = "cancelled"


_TRANSITIONS: Dict[SessionState, tuple] = {
    SessionState.IDLE: (SessionState.HANDSHAKING,),
    SessionState.HANDSHAKING: (SessionState.ERASING, SessionState.FAILED),
    SessionState.ERASING: (SessionState.PROGRAMMING, SessionState.FAILED),
    SessionState.PROGRAMMING: (SessionState.FINALIZING, SessionState.FAILED),
    SessionState.FINALIZING: (SessionState.SUCCEEDED, SessionState.FAILED),
    SessionState.SUCCEEDED: (),
    SessionState.FAILED: (),
}


class FlashProtocolError(Exception):
    """Errors raised when a flash session does not succeed."""

    def __init__(self, message: str, session: Optional["FlashSession"] = None):
        super().__init__(message)
        self.session = session


class ProtocolTimeoutError(FlashProtocolError):
    """Bootloader never acknowledged the handshake."""


class ProtocolNackError(FlashProtocolError):
    """Bootloader rejected the erase, a data block or the reset."""


class UnexpectedResponseError(FlashProtocolError):
    """Bootloader answered a data block with neither ACK nor NACK."""


class FlashCancelledError(FlashProtocolError):
    """Session was cancelled between blocks."""


_FAILURE_ERRORS = {
    FailureReason.HANDSHAKE_TIMEOUT: ProtocolTimeoutError,
    FailureReason.ERASE_REJECTED: ProtocolNackError,
    FailureReason.PROGRAM_REJECTED: ProtocolNackError,
    FailureReason.RESET_REJECTED: ProtocolNackError,
    FailureReason.UNEXPECTED_RESPONSE: UnexpectedResponseError,
    FailureReason.CANCELLED: FlashCancelledError,
}


@dataclass
class FlasherConfig:
    """
    Tunables for a flash session.

    Attributes:
        max_tries: Handshake retries; at most max_tries + 1 probes are sent
        retry_delay: Pause after a spurious handshake byte, seconds
        reset_on_abort: Send TERMINATE after a failed or cancelled transfer
            instead of leaving the bootloader mid-session
    """
    max_tries: int = DEFAULT_MAX_TRIES
    retry_delay: float = RETRY_DELAY
    reset_on_abort: bool = False

    def __post_init__(self) -> None:
        if self.max_tries < 0:
            raise ValueError(f"max_tries must be >= 0, got {self.max_tries}")
        if self.retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0, got {self.retry_delay}")


@dataclass
class FlashSession:
    """State and counters of a single flash session."""

    total_blocks: int = 0
    state: SessionState = SessionState.IDLE
    reason: Optional[FailureReason] = None
    message: str = ""
    probes_sent: int = 0
    blocks_sent: int = 0
    blocks_acked: int = 0
    last_response: Optional[int] = None
    history: List[SessionState] = field(default_factory=lambda: [SessionState.IDLE])

    @property
    def ok(self) -> bool:
        return self.state is SessionState.SUCCEEDED

    @property
    def finished(self) -> bool:
        return self.state in (SessionState.SUCCEEDED, SessionState.FAILED)

    def transition(self, target: SessionState) -> None:
        """Move to `target`; backward moves and revisits raise ValueError."""
        if target not in _TRANSITIONS[self.state]:
            raise ValueError(
                f"Invalid session transition {self.state.value} -> {target.value}"
            )
        self.state = target
        self.history.append(target)

    def fail(self, reason: FailureReason, message: str) -> None:
        self.transition(SessionState.FAILED)
        self.reason = reason
        self.message = message
        logger.debug(f"Session failed ({reason.value}): {message}")


def progress_percent(index: int, total: int) -> int:
    """
    Progress after block `index` (0-based) of `total` is acknowledged.

    Reports floor(index * 100 / total); the final block reports 100.
    """
    if total <= 0 or index >= total - 1:
        return 100
    return index * 100 // total


class N76Flasher:
    """
    Runs the handshake/erase/program/finalize sequence.

    Example:
        with N76Transport("/dev/ttyUSB0") as transport:
            session = N76Flasher(transport).flash(image_data)
    """

    def __init__(
        self,
        transport,
        config: Optional[FlasherConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            transport: Open transport (configure/write/read_byte/flush_input)
            config: Session tunables (default FlasherConfig())
            sleep: Delay function, replaceable in tests
        """
        self.transport = transport
        self.config = config or FlasherConfig()
        self._sleep = sleep

    def handshake(self, session: FlashSession) -> bool:
        """Probe the bootloader until it acknowledges."""
        session.transition(SessionState.HANDSHAKING)
        self.transport.configure(TimeoutMode.HANDSHAKE)
        logger.info("Connecting, please RESET the microcontroller...")

        max_tries = self.config.max_tries
        for attempt in range(max_tries + 1):
            self.transport.write(build_probe_frame())
            session.probes_sent += 1

            response = classify_response(self.transport.read_byte())
            if response.is_ack:
                logger.info("Handshake OK")
                return True

            session.last_response = response.raw
            if attempt == max_tries:
                logger.warning(f"Try {attempt}: {response.describe()}, giving up")
                break

            logger.debug(f"Try {attempt}: {response.describe()}")
            if response.kind is not ResponseKind.TIMEOUT:
                # Garbage or application output: let it drain, then discard it
                self._sleep(self.config.retry_delay)
                self.transport.flush_input()

        session.fail(
            FailureReason.HANDSHAKE_TIMEOUT,
            f"Handshake failed after {session.probes_sent} attempts",
        )
        return False

    def erase(self, session: FlashSession) -> bool:
        """Erase program memory."""
        session.transition(SessionState.ERASING)
        logger.info("Erasing...")
        self.transport.write(build_erase_frame())

        response = classify_response(self.transport.read_byte())
        if not response.is_ack:
            session.last_response = response.raw
            session.fail(
                FailureReason.ERASE_REJECTED,
                f"Error erasing chip: {response.describe()}",
            )
            return False

        logger.info("Erase done")
        return True

    def program(
        self,
        session: FlashSession,
        blocks: List[bytes],
        progress_cb: Optional[ProgressCallback] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> bool:
        """Send every block, one ACK per block."""
        session.transition(SessionState.PROGRAMMING)
        self.transport.configure(TimeoutMode.STREAMING)
        total = len(blocks)
        logger.info(f"Writing {total} blocks...")

        for index, block in enumerate(blocks):
            if should_cancel is not None and should_cancel():
                session.fail(
                    FailureReason.CANCELLED,
                    f"Cancelled after {session.blocks_sent}/{total} blocks",
                )
                self._abort()
                return False

            self.transport.write(build_data_frame(block))
            session.blocks_sent += 1

            response = classify_response(self.transport.read_byte())
            if response.is_ack:
                session.blocks_acked += 1
                percent = progress_percent(index, total)
                logger.debug(f"Block {index + 1}/{total} acknowledged ({percent}%)")
                if progress_cb:
                    progress_cb(index + 1, total, percent)
                continue

            session.last_response = response.raw
            offset = index * len(block)
            if response.kind is ResponseKind.NACK:
                session.fail(
                    FailureReason.PROGRAM_REJECTED,
                    f"Block {index} (offset 0x{offset:04X}) rejected by bootloader",
                )
            else:
                session.fail(
                    FailureReason.UNEXPECTED_RESPONSE,
                    f"Block {index} (offset 0x{offset:04X}): unexpected response "
                    f"{response.describe()}",
                )
            self._abort()
            return False

        return True

    def finalize(self, session: FlashSession) -> bool:
        """Ask the bootloader to reset into the new firmware."""
        session.transition(SessionState.FINALIZING)
        logger.info("Soft reset...")
        self.transport.write(build_terminate_frame())

        response = classify_response(self.transport.read_byte())
        if not response.is_ack:
            session.last_response = response.raw
            session.fail(
                FailureReason.RESET_REJECTED,
                f"Error resetting: {response.describe()}",
            )
            return False

        session.transition(SessionState.SUCCEEDED)
        logger.info("Done!")
        return True

    def _abort(self) -> None:
        """Optionally release the bootloader after a failed transfer."""
        if not self.config.reset_on_abort:
            return
        logger.info("Sending reset after aborted transfer")
        # Bounded read: the device may never answer mid-transfer
        self.transport.configure(TimeoutMode.HANDSHAKE)
        self.transport.write(build_terminate_frame())
        response = classify_response(self.transport.read_byte())
        logger.debug(f"Abort reset response: {response.describe()}")

    def flash(
        self,
        image_data: bytes,
        progress_cb: Optional[ProgressCallback] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> FlashSession:
        """
        Run a full flash session.

        Args:
            image_data: Firmware bytes (not modified)
            progress_cb: Optional callback(blocks_done, total_blocks, percent)
            should_cancel: Optional predicate checked before every block

        Returns:
            The finished FlashSession (SUCCEEDED or FAILED)

        Raises:
            ValueError: If image_data is empty
            TransportError: On serial I/O failure
        """
        if not image_data:
            raise ValueError("Firmware image is empty")

        blocks = split_blocks(image_data)
        session = FlashSession(total_blocks=block_count(len(image_data)))

        if (
            self.handshake(session)
            and self.erase(session)
            and self.program(session, blocks, progress_cb, should_cancel)
        ):
            self.finalize(session)
        return session

    def run(
        self,
        image_data: bytes,
        progress_cb: Optional[ProgressCallback] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> FlashSession:
        """
        Like flash(), but raise on failure.

        Raises:
            FlashProtocolError: Subclass matching the failure reason
        """
        session = self.flash(image_data, progress_cb, should_cancel)
        if not session.ok:
            error_cls = _FAILURE_ERRORS.get(session.reason, FlashProtocolError)
            raise error_cls(session.message, session)
        return session
