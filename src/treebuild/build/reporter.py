# This file is part of Treebuild, a meta-build tool for heterogeneous source workspaces.
#
# Copyright 2025 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-only

"""Console messages shown when a build pass ends."""

from __future__ import annotations

import datetime
import sys

from rich.console import Console


class Reporter:
    """Prints the final status of a build on the real terminal."""

    def __init__(self, console: Console | None = None, post_success_message: str | None = None) -> None:
        self.console = console or Console(file=sys.__stderr__, highlight=False)
        self.post_success_message = post_success_message

    def error(self, error: BaseException) -> None:
        lines = str(error).split("\n")
        self.console.print(f"Build failed: {lines[0]}", style="bold red", markup=False)
        if len(lines) > 1:
            self.console.print("\n".join(lines[1:]), markup=False)

    def success(self) -> None:
        now = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        self.console.print(f"Build finished successfully at {now}", style="bold green")
        if self.post_success_message:
            self.console.print(self.post_success_message, markup=False)

    def warn(self, message: str) -> None:
        self.console.print(f"  WARN: {message}", style="magenta", markup=False)
