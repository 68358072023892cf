# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""MeshLedger CLI - audit and harness surface."""

from .main import app, main

__all__ = ["main", "app"]
