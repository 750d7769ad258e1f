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

"""Build orchestration: build, rebuild and force-build of package sets.

These operations do not import sources or install OS packages; the driver
fetches sources that are missing, everything else is assumed to be in place.

Every operation takes the packages the user selected and the full set of
packages the pass runs on (the selection plus its dependencies).
Invalidation only ever touches the selected packages.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from treebuild.build.driver import BuildDriver, BuildSettings, SequentialBuildDriver
from treebuild.build.report import generate_build_report, report_path
from treebuild.core.exceptions import ReportWriteFailure

if TYPE_CHECKING:
    from treebuild.workspace.manifest import Manifest

logger = logging.getLogger(__name__)

BUILD_OPERATION = "treebuild-build"


@dataclass(frozen=True)
class InvalidationRequest:
    """Packages explicitly selected and packages enabled for one pass."""

    selected: tuple[str, ...]
    enabled: tuple[str, ...]

    def __post_init__(self) -> None:
        missing = [name for name in self.selected if name not in self.enabled]
        if missing:
            raise ValueError(f"selected packages not enabled: {', '.join(missing)}")

    @classmethod
    def for_selection(cls, manifest: Manifest, selected: Sequence[str]) -> InvalidationRequest:
        """Build a request enabling the selection and its dependencies."""
        return cls(tuple(selected), tuple(manifest.resolve_enabled(selected)))


class BuildOps:
    """Operations related to building packages of a manifest."""

    def __init__(
        self,
        manifest: Manifest,
        driver: BuildDriver | None = None,
        settings: BuildSettings | None = None,
        report_dir: Path | None = None,
    ) -> None:
        """Initialize the operations.

        Args:
            manifest: Manifest on which to operate.
            driver: Build driver; defaults to a SequentialBuildDriver sharing
                the settings.
            settings: Pass-wide flags, reset before every pass.
            report_dir: Directory of the build report. None disables it.
        """
        self.manifest = manifest
        self.settings = settings or BuildSettings()
        self.driver = driver or SequentialBuildDriver(manifest, self.settings)
        self.report_dir = report_dir

    @property
    def report_path(self) -> Path | None:
        return report_path(self.report_dir)

    def rebuild_all(self) -> None:
        """Clean and build every package of the layout."""
        packages = self.manifest.all_layout_packages()
        self.rebuild_packages(packages, packages)

    def rebuild_packages(self, selected_packages: Sequence[str], all_enabled_packages: Sequence[str]) -> None:
        """Clean the selected packages, then build all enabled ones.

        Args:
            selected_packages: Packages whose build byproducts are removed.
            all_enabled_packages: Packages the build pass runs on.
        """
        self.settings.do_rebuild = True
        for name in selected_packages:
            logger.debug(f"{name}: preparing for rebuild")
            self.manifest.find_package(name).prepare_for_rebuild()
        self.build_packages(all_enabled_packages)

    def force_build_all(self) -> None:
        """Force-build every package of the layout."""
        packages = self.manifest.all_layout_packages()
        self.force_build_packages(packages, packages)

    def force_build_packages(self, selected_packages: Sequence[str], all_enabled_packages: Sequence[str]) -> None:
        """Make the selected packages go through all build steps again.

        Unlike a rebuild, the current build byproducts are kept.
        """
        for name in selected_packages:
            logger.debug(f"{name}: preparing for forced build")
            self.manifest.find_package(name).prepare_for_forced_build()
        self.build_packages(all_enabled_packages)

    def build_packages(self, all_enabled_packages: Sequence[str]) -> None:
        """Build the listed packages, running only the steps still needed.

        The build report is written whether the pass succeeds or not.

        Raises:
            BuildFailure: If the build pass failed.
            ReportWriteFailure: If the pass succeeded but the report could
                not be written.
        """
        self.settings.do_rebuild = False
        self.settings.do_forced_build = False
        names = list(all_enabled_packages)
        build_error: BaseException | None = None
        try:
            self.driver(names, BUILD_OPERATION, ["build"])
        except BaseException as e:
            build_error = e
            raise
        finally:
            self._write_report(names, build_error)

    def _write_report(self, names: list[str], build_error: BaseException | None) -> None:
        try:
            generate_build_report(self.manifest, names, self.report_dir)
        except OSError as e:
            if build_error is not None:
                logger.error(f"Failed to write build report to {self.report_path}: {e}")
                return
            raise ReportWriteFailure(
                message=f"cannot write build report to {self.report_path}: {e}",
                path=str(self.report_path),
            ) from e

    def build(self, request: InvalidationRequest) -> None:
        self.build_packages(request.enabled)

    def rebuild(self, request: InvalidationRequest) -> None:
        self.rebuild_packages(request.selected, request.enabled)

    def force_build(self, request: InvalidationRequest) -> None:
        self.force_build_packages(request.selected, request.enabled)
