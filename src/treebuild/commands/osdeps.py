# This file is part of Treebuild, a meta-build tool for heterogeneous source workspaces.
#
# Copyright 2025 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-only
#
# Treebuild is free software: you can redistribute it and/or modify it under
# the terms of the GNU General Public License version 3, as published by the
# Free Software Foundation.
#
# Treebuild is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranties of MERCHANTABILITY,
# SATISFACTORY QUALITY, or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details.
#
# You should have received a copy of the GNU General Public License along with
# Treebuild. If not, see <http://www.gnu.org/licenses/>.

"""Implementation of `treebuild osdeps` command.

Lists the native OS packages the selected packages and the build tools of
the workspace need, one per line.
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer

from treebuild.commands.common import open_workspace, selected_packages
from treebuild.core.exceptions import TreebuildError
from treebuild.core.run import RunContext, activity


def osdeps(
    packages: list[str] | None = typer.Argument(None, help="Packages to inspect (default: the whole layout)"),
    root: Path = typer.Option(Path("."), "--root", help="Workspace root directory"),
) -> None:
    """Print the OS packages needed to build packages of a workspace."""
    resolved: list[str] = []
    exit_code = 0
    with RunContext("osdeps") as run:
        try:
            manifest = open_workspace(root, run.cfg, run)
            names = manifest.resolve_enabled(selected_packages(manifest, packages))
            wanted: set[str] = set(manifest.build_system_dependencies)
            for name in names:
                wanted |= manifest.find_package(name).os_packages
            activity("osdeps", f"Resolving {len(wanted)} OS dependencies for {manifest.osdeps.operating_system}")
            resolved = manifest.osdeps.resolve_os_dependencies(sorted(wanted))
            run.log_event({"event": "osdeps.resolved", "names": sorted(wanted), "packages": resolved})
        except TreebuildError as e:
            exit_code = e.exit_code
            activity("osdeps", f"Error: {e}")
            run.log_event({"event": "osdeps.failed", "error": str(e)})

        run.write_summary(exit_code=exit_code, packages=resolved)

    for name in resolved:
        typer.echo(name)
    sys.exit(exit_code)
