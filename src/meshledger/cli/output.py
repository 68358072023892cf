# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""Output formatting for CLI commands.

Handles JSON vs plain text output based on CLI config.
"""

from __future__ import annotations

import json
import sys
from typing import Any

from .config import get_cli_config


def _format_text(data: Any, indent: int = 0) -> list[str]:
    pad = "  " * indent
    lines = []
    if isinstance(data, dict):
        for key, value in data.items():
            if isinstance(value, (dict, list)) and value:
                lines.append(f"{pad}{key}:")
                lines.extend(_format_text(value, indent + 1))
            else:
                lines.append(f"{pad}{key}: {value}")
    elif isinstance(data, list):
        for item in data:
            if isinstance(item, dict):
                lines.append(f"{pad}-")
                lines.extend(_format_text(item, indent + 1))
            else:
                lines.append(f"{pad}- {item}")
    else:
        lines.append(f"{pad}{data}")
    return lines


def output_result(data: dict[str, Any], output_format: str | None = None) -> None:
    """Print a command result in the configured output format."""
    fmt = output_format or get_cli_config().output

    if fmt == "json":
        print(json.dumps(data, indent=2, default=str))
    else:
        print("\n".join(_format_text(data)))


def output_error(message: str, details: dict[str, Any] | None = None) -> None:
    """Print error message to stderr."""
    if get_cli_config().output == "json":
        print(json.dumps({"error": message, "details": details or {}}, default=str), file=sys.stderr)
    else:
        print(f"Error: {message}", file=sys.stderr)
