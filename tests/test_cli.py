"""Tests for the typer command-line interface."""

import pytest
from typer.testing import CliRunner

from n76_flasher import cli
from n76_flasher.core.results import OperationResult
from n76_flasher.protocol.n76_transport import DeviceError

runner = CliRunner()


@pytest.fixture
def fake_flash(monkeypatch):
    """Replace the flash workflow and record how it was called."""
    calls = []

    def _install(ok: bool = True, cause: str = ""):
        def fake_flash_firmware(port, firmware_path, config=None, progress_cb=None):
            calls.append({"port": port, "file": firmware_path, "config": config})
            if progress_cb:
                progress_cb(1, 1, 100)
            result = OperationResult(ok=ok, operation="flash_firmware", port=port)
            if not ok:
                result.add_error("Handshake failed after 26 attempts")
                result.metadata["cause"] = cause
            return result

        monkeypatch.setattr(cli, "flash_firmware", fake_flash_firmware)
        return calls

    return _install


def test_flash_with_explicit_port(fake_flash):
    calls = fake_flash()

    result = runner.invoke(cli.app, ["flash", "-f", "app.bin", "-p", "ttyUSB3", "-t", "10"])

    assert result.exit_code == 0, result.output
    assert calls[0]["port"] == "/dev/ttyUSB3"
    assert calls[0]["file"] == "app.bin"
    assert calls[0]["config"].max_tries == 10
    assert calls[0]["config"].reset_on_abort is False
    assert "Firmware flashed" in result.output


def test_flash_default_tries_and_reset_flag(fake_flash):
    calls = fake_flash()

    result = runner.invoke(
        cli.app, ["flash", "--file", "app.bin", "--port", "/dev/ttyS0", "--reset-on-abort"]
    )

    assert result.exit_code == 0, result.output
    assert calls[0]["config"].max_tries == 25
    assert calls[0]["config"].reset_on_abort is True


def test_flash_failure_exits_1(fake_flash):
    fake_flash(ok=False, cause="handshake_timeout")

    result = runner.invoke(cli.app, ["flash", "-f", "app.bin", "-p", "ttyUSB0"])

    assert result.exit_code == 1
    assert "W_HANDSHAKE_TIMEOUT" in result.output


def test_non_numeric_tries_exits_1(fake_flash):
    calls = fake_flash()

    result = runner.invoke(cli.app, ["flash", "-f", "app.bin", "-p", "ttyUSB0", "-t", "many"])

    assert result.exit_code == 1
    assert "not a number" in result.output
    assert calls == []


def test_no_port_found_exits_1(fake_flash, monkeypatch):
    calls = fake_flash()

    def no_ports(**kwargs):
        raise DeviceError("No available serial port found matching 'ttyUSB' in /dev")

    monkeypatch.setattr(cli, "select_port", no_ports)

    result = runner.invoke(cli.app, ["flash", "-f", "app.bin"])

    assert result.exit_code == 1
    assert "No available serial port" in result.output
    assert "W_DEVICE_NOT_FOUND" in result.output
    assert calls == []


def test_search_prefix_passed_to_discovery(fake_flash, monkeypatch):
    calls = fake_flash()
    seen = {}

    def fake_select_port(port=None, search="ttyUSB", choose=None):
        seen["search"] = search
        return "/dev/ttyACM0"

    monkeypatch.setattr(cli, "select_port", fake_select_port)

    result = runner.invoke(cli.app, ["flash", "-f", "app.bin", "-s", "ttyACM"])

    assert result.exit_code == 0, result.output
    assert seen["search"] == "ttyACM"
    assert calls[0]["port"] == "/dev/ttyACM0"


def test_missing_file_exits_1(fake_flash):
    calls = fake_flash()

    result = runner.invoke(cli.app, ["flash", "-p", "ttyUSB0"])

    assert result.exit_code == 1
    assert "No input file specified" in result.output
    assert calls == []


def test_blank_file_exits_1(fake_flash):
    calls = fake_flash()

    result = runner.invoke(cli.app, ["flash", "-f", "  ", "-p", "ttyUSB0"])

    assert result.exit_code == 1
    assert calls == []


def test_ports_lists_matches(monkeypatch):
    monkeypatch.setattr(cli, "discover_ports", lambda search: ["ttyUSB0", "ttyUSB1"])

    result = runner.invoke(cli.app, ["ports"])

    assert result.exit_code == 0
    assert "ttyUSB0" in result.output
    assert "ttyUSB1" in result.output


def test_choose_port_by_number(monkeypatch):
    monkeypatch.setattr(cli.typer, "prompt", lambda text: "2")
    assert cli.choose_port(["ttyUSB0", "ttyUSB1"]) == "ttyUSB1"


def test_choose_port_by_name(monkeypatch):
    monkeypatch.setattr(cli.typer, "prompt", lambda text: "ttyUSB7")
    assert cli.choose_port(["ttyUSB0", "ttyUSB1"]) == "ttyUSB7"


def test_help_short_flag():
    result = runner.invoke(cli.app, ["flash", "-h"])
    assert result.exit_code == 0
    assert "--file" in result.output
