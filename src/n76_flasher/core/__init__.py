"""
Core module for N76 Flasher.

This module provides the single source of truth for:
- Serial port discovery (discovery.py)
- Command-line value parsing (parsing.py)
- Result objects (results.py)
- The end-to-end flash workflow (actions.py)
- Standardized warnings/messages (messages.py)

The CLI calls into this module rather than implementing its own logic.
"""

from .discovery import discover_ports, DEFAULT_SEARCH, DEV_DIR
from .parsing import ConfigError, parse_tries, resolve_port
from .results import OperationResult
from .messages import (
    MessageLevel,
    WarningCode,
    WarningItem,
    code_for_cause,
    result_to_warnings,
)
from .actions import flash_firmware, select_port

__all__ = [
    # Discovery
    "discover_ports",
    "DEFAULT_SEARCH",
    "DEV_DIR",
    # Parsing
    "ConfigError",
    "parse_tries",
    "resolve_port",
    # Results
    "OperationResult",
    # Messages
    "MessageLevel",
    "WarningCode",
    "WarningItem",
    "code_for_cause",
    "result_to_warnings",
    # Actions
    "flash_firmware",
    "select_port",
]
