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

"""Implementation of `treebuild snapshot` command.

Copies what is needed to re-import the selected packages into a target
directory and prints the import descriptors as YAML, keyed by package name.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import typer
import yaml

from treebuild.commands.common import open_workspace, selected_packages
from treebuild.core.exceptions import TreebuildError
from treebuild.core.run import RunContext, activity
from treebuild.importers import Snapshottable


def snapshot(
    target_dir: Path = typer.Argument(..., help="Directory receiving the snapshot files"),
    packages: list[str] | None = typer.Argument(None, help="Packages to snapshot (default: the whole layout)"),
    root: Path = typer.Option(Path("."), "--root", help="Workspace root directory"),
) -> None:
    """Snapshot the import state of packages.

    Git packages are pinned to the revision checked out locally; archive
    packages have their archive copied under TARGET_DIR/archives.
    """
    descriptors: dict[str, dict[str, Any]] = {}
    exit_code = 0
    with RunContext("snapshot") as run:
        try:
            manifest = open_workspace(root, run.cfg, run)
            names = manifest.resolve_enabled(selected_packages(manifest, packages))
            target_dir.mkdir(parents=True, exist_ok=True)
            for name in names:
                package = manifest.find_package(name)
                if not isinstance(package.importer, Snapshottable):
                    activity("snapshot", f"{name}: no importer, skipped")
                    continue
                descriptor = package.importer.snapshot(package, target_dir)
                descriptors[name] = {"type": package.importer.kind, **descriptor}
                run.log_event({"event": "snapshot.package", "package": name, **descriptor})
        except TreebuildError as e:
            exit_code = e.exit_code
            activity("snapshot", f"Error: {e}")
            run.log_event({"event": "snapshot.failed", "error": str(e)})

        run.write_summary(exit_code=exit_code, packages=sorted(descriptors))

    if exit_code == 0:
        typer.echo(yaml.safe_dump(descriptors, sort_keys=False), nl=False)
    sys.exit(exit_code)
