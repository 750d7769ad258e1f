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

"""Path helpers and directory creation for Treebuild."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from treebuild.config import load_config


def resolve_paths(cfg: Mapping[str, Any]) -> dict[str, Path]:
    """Return resolved Path objects for configured paths."""
    paths: Mapping[str, Any] = cfg.get("paths", {})
    return {key: Path(str(val)).expanduser().resolve() for key, val in paths.items()}


def ensure_directories(paths_cfg: Mapping[str, Any] | None = None) -> dict[str, Path]:
    """Ensure the cache and run directories exist.

    Returns a mapping of keys to Path objects that were created/ensured.
    """
    if paths_cfg is None:
        paths = resolve_paths(load_config())
    else:
        paths = resolve_paths({"paths": paths_cfg})

    for key in ("cache_root", "archive_cache", "runs_root"):
        if key in paths:
            paths[key].mkdir(parents=True, exist_ok=True)

    return paths
