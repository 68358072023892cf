# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""CLI configuration - journal location and output format.

Each value comes from the first layer that sets it: command-line flags,
then MESHLEDGER_JOURNAL / MESHLEDGER_OUTPUT (read through CoreSettings),
then ~/.meshledger/cli.toml, then the defaults. An output format other than
text or json is skipped, not rejected.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..core.config import get_config

CONFIG_PATH = Path.home() / ".meshledger" / "cli.toml"
DEFAULT_JOURNAL = Path.home() / ".meshledger" / "journal.json"
OUTPUT_FORMATS = ("text", "json")


def _read_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "rb") as f:
        return tomllib.load(f)


@dataclass
class CLIConfig:
    journal_path: Path
    output: str = "text"

    @classmethod
    def load(
        cls,
        config_path: Path | None = None,
        journal_path: str | None = None,
        output: str | None = None,
    ) -> CLIConfig:
        settings = get_config()
        layers = (
            {"journal": journal_path, "output": output},
            {"journal": settings.journal_path, "output": settings.cli_output},
            _read_file(config_path or CONFIG_PATH),
        )
        journal = next((layer["journal"] for layer in layers if layer.get("journal")), DEFAULT_JOURNAL)
        fmt = next((layer["output"] for layer in layers if layer.get("output") in OUTPUT_FORMATS), "text")
        return cls(journal_path=Path(str(journal)).expanduser(), output=fmt)


_config: CLIConfig | None = None


def get_cli_config() -> CLIConfig:
    global _config
    if _config is None:
        _config = CLIConfig.load()
    return _config


def set_cli_config(config: CLIConfig) -> None:
    """Install the config resolved from the parsed command line."""
    global _config
    _config = config


def reset_cli_config() -> None:
    global _config
    _config = None
