"""
N76 Flasher CLI

Command-line interface for flashing N76E003 / MS51 microcontrollers
through their serial bootloader.
"""

import sys
import logging
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.logging import RichHandler
from rich.progress import Progress, BarColumn, TextColumn

from n76_flasher import __version__
from n76_flasher.core.actions import flash_firmware, select_port
from n76_flasher.core.discovery import DEFAULT_SEARCH, discover_ports
from n76_flasher.core.messages import (
    MessageLevel,
    WarningCode,
    WarningItem,
    result_to_warnings,
)
from n76_flasher.core.parsing import ConfigError, parse_tries
from n76_flasher.core.results import OperationResult
from n76_flasher.protocol.flash_protocol import DEFAULT_MAX_TRIES, FlasherConfig
from n76_flasher.protocol.n76_transport import DeviceError

# Setup Rich console
console = Console()

# Setup logging on the shared console
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
)
logger = logging.getLogger("n76_flasher")

app = typer.Typer(
    help="Nuvoton N76E003 / MS51 flash utility",
    context_settings={"help_option_names": ["-h", "--help"]},
    no_args_is_help=True,
)


def print_header(text: str) -> None:
    """Print fancy header."""
    console.print(Panel(text, expand=False, style="bold blue"))


def print_success(text: str) -> None:
    """Print success message."""
    console.print(f"✓ {text}", style="green")


def print_warning(text: str) -> None:
    """Print warning message."""
    console.print(f"⚠️  {text}", style="yellow")


def print_error(text: str) -> None:
    """Print error message."""
    console.print(f"❌ {text}", style="red")


def print_structured_warning(warning: WarningItem, verbose: bool = False) -> None:
    """Print a structured warning with its remediation hint."""
    if warning.level == MessageLevel.ERROR:
        style = "red"
        icon = "❌"
    elif warning.level == MessageLevel.WARN:
        style = "yellow"
        icon = "⚠️"
    else:
        style = "blue"
        icon = "ℹ️"

    console.print(f"{icon} [{warning.code.value}] {warning.title}", style=style)
    if warning.remediation and (verbose or warning.level == MessageLevel.ERROR):
        console.print(f"   → {warning.remediation}", style="cyan")


def print_warnings_from_result(result: OperationResult, verbose: bool = False) -> None:
    """Print all warnings from an OperationResult using structured format."""
    for warning in result_to_warnings(result):
        print_structured_warning(warning, verbose=verbose)


def choose_port(found: List[str]) -> str:
    """Ask the user to pick one of several discovered ports."""
    table = Table(title="Serial Ports")
    table.add_column("#", style="dim")
    table.add_column("Port", style="cyan")
    for index, name in enumerate(found, 1):
        table.add_row(str(index), name)
    console.print(table)

    answer = typer.prompt("Enter port name").strip()
    if answer.isdigit() and 1 <= int(answer) <= len(found):
        return found[int(answer) - 1]
    return answer


def version_callback(value: bool) -> None:
    if value:
        console.print(f"n76-flasher {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", callback=version_callback, is_eager=True, help="Show version"
    ),
) -> None:
    """Nuvoton N76E003 / MS51 flash utility."""


@app.command()
def ports(
    search: str = typer.Option(DEFAULT_SEARCH, "--search", "-s", help="Port name prefix to search"),
) -> None:
    """List candidate serial ports under /dev."""
    print_header("Available Serial Ports")

    found = discover_ports(search)
    if not found:
        print_warning(f"No serial ports found matching '{search}'")
        return

    table = Table(title="Serial Ports")
    table.add_column("Port", style="cyan")
    table.add_column("Device", style="magenta")
    for name in found:
        table.add_row(name, f"/dev/{name}")
    console.print(table)


@app.command()
def flash(
    file: Optional[str] = typer.Option(
        None, "--file", "-f", help="Binary file to flash"
    ),
    search: str = typer.Option(
        DEFAULT_SEARCH, "--search", "-s", help="Serial port type to search"
    ),
    port: Optional[str] = typer.Option(
        None, "--port", "-p", help="Fixed serial port to use (skips discovery)"
    ),
    tries: Optional[str] = typer.Option(
        None,
        "--tries",
        "-t",
        help=f"Number of connecting tries (default {DEFAULT_MAX_TRIES})",
    ),
    reset_on_abort: bool = typer.Option(
        False,
        "--reset-on-abort",
        help="Send a reset to the bootloader if programming fails",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show protocol traffic"),
) -> None:
    """Flash a firmware binary through the serial bootloader."""
    print_header("N76 Flash")

    if verbose:
        logger.setLevel(logging.DEBUG)

    try:
        max_tries = parse_tries(tries, default=DEFAULT_MAX_TRIES)
        if not file or not file.strip():
            raise ConfigError("No input file specified.")
        device = select_port(port=port, search=search, choose=choose_port)
    except ConfigError as e:
        print_error(str(e))
        sys.exit(1)
    except DeviceError as e:
        print_structured_warning(
            WarningItem(MessageLevel.ERROR, WarningCode.W_DEVICE_NOT_FOUND, str(e))
        )
        sys.exit(1)

    config = FlasherConfig(max_tries=max_tries, reset_on_abort=reset_on_abort)

    with Progress(
        TextColumn("[{task.description}]"),
        BarColumn(),
        TextColumn("[{task.percentage:.0f}%]"),
        console=console,
    ) as progress:
        task = progress.add_task("Writing", total=100)

        def on_progress(done: int, total: int, percent: int) -> None:
            progress.update(task, completed=percent)

        result = flash_firmware(device, file, config=config, progress_cb=on_progress)

    print_warnings_from_result(result, verbose=verbose)
    console.print(result.to_summary(), style="dim")
    if not result.ok:
        sys.exit(1)
    print_success("Firmware flashed, device reset")


def main() -> None:
    """Main entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[red bold]Fatal error:[/red bold] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
