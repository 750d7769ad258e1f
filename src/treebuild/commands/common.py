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

"""Helpers shared by the workspace commands."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from treebuild.core.run import RunContext
from treebuild.paths import ensure_directories
from treebuild.workspace.definitions import load_workspace
from treebuild.workspace.manifest import Manifest


def open_workspace(root: Path, cfg: Mapping[str, Any], run: RunContext) -> Manifest:
    """Load the workspace rooted at root with the settings of cfg.

    Command logs of the packages go to the logs directory of the run.
    """
    paths = ensure_directories(cfg.get("paths", {}))
    defaults = cfg.get("defaults", {})
    manifest = load_workspace(
        root,
        archive_cache=paths["archive_cache"],
        operating_system=defaults.get("operating_system"),
        log_dir=run.logs_path,
        verbose=bool(cfg.get("behavior", {}).get("verbose")),
    )
    run.log_event(
        {
            "event": "workspace.loaded",
            "root": str(manifest.root_dir),
            "packages": len(manifest.packages),
        }
    )
    return manifest


def selected_packages(manifest: Manifest, names: Sequence[str] | None) -> list[str]:
    """Return the names given on the command line, or the whole layout.

    Raises:
        PackageNotFoundError: If a given name is not a source package.
    """
    if not names:
        return manifest.all_layout_packages()
    for name in names:
        manifest.find_package(name)
    return list(names)
