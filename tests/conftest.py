"""Shared fixtures: a scripted stand-in for the serial bootloader."""

from typing import List, Optional

import pytest

from n76_flasher.protocol.framing import CMD_ACK


class FakeBootloader:
    """
    Scripted replacement for N76Transport.

    Each read_byte() pops the next scripted response; once the script is
    exhausted `default` is returned (ACK unless told otherwise, None means
    the device stays silent).
    """

    def __init__(self, responses: Optional[List[Optional[int]]] = None, default: Optional[int] = CMD_ACK):
        self.responses = list(responses or [])
        self.default = default
        self.writes: List[bytes] = []
        self.modes = []
        self.flushes = 0
        self.opened = False
        self.closed = False

    def open(self) -> None:
        self.opened = True

    def close(self) -> None:
        self.closed = True

    def configure(self, mode) -> None:
        self.modes.append(mode)

    def write(self, data: bytes) -> None:
        self.writes.append(bytes(data))

    def read_byte(self) -> Optional[int]:
        if self.responses:
            return self.responses.pop(0)
        return self.default

    def flush_input(self) -> None:
        self.flushes += 1

    def frames(self, command: int) -> List[bytes]:
        """Written frames starting with `command`."""
        return [w for w in self.writes if w and w[0] == command]


@pytest.fixture
def bootloader():
    """Factory for scripted fake bootloaders."""
    return FakeBootloader
