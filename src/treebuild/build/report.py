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

"""Build report generation.

Snapshots the phase markers of every package of a build pass into
``build_report.json``. The report is informational (for humans and CI) and
is never read back as build state, so it is simply overwritten.
"""

from __future__ import annotations

import datetime
import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from treebuild.workspace.manifest import Manifest
    from treebuild.workspace.package import Package

logger = logging.getLogger(__name__)

REPORT_BASENAME = "build_report.json"


def report_path(report_dir: Path | None) -> Path | None:
    """Return the path of the report file, or None if reports are disabled."""
    return report_dir / REPORT_BASENAME if report_dir is not None else None


def package_entry(package: Package) -> dict[str, Any]:
    """Return the report entry of one package, keys in report order."""
    return {
        "name": package.name,
        "import_invoked": package.import_invoked,
        "prepare_invoked": package.prepare_invoked,
        "build_invoked": package.build_invoked,
        "failed": package.failed,
        "imported": package.imported,
        "prepared": package.prepared,
        "built": package.built,
    }


def generate_build_report(
    manifest: Manifest,
    package_names: Iterable[str],
    report_dir: Path | None,
) -> Path | None:
    """Write the build report of a pass.

    Args:
        manifest: Manifest the package names are resolved against.
        package_names: Packages of the pass, in the order they are listed.
        report_dir: Directory of the report. None disables reporting.

    Returns:
        Path of the written report, or None when reporting is disabled.

    Raises:
        OSError: If the report directory or file cannot be written.
    """
    path = report_path(report_dir)
    if path is None:
        return None

    packages = [package_entry(manifest.find_package(name)) for name in package_names]
    timestamp = datetime.datetime.now(datetime.UTC).isoformat().replace("+00:00", "Z")
    report = {"build_report": {"timestamp": timestamp, "packages": packages}}

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report, indent=2) + "\n")
    logger.debug(f"Wrote build report for {len(packages)} packages to {path}")
    return path
