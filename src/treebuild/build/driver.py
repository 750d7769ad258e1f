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

"""Build driver: runs the phases of a set of packages.

The orchestrator hands the driver a set of package names, an operation label
and the phases to reach. The driver decides the order (dependencies first)
and which phases each package still needs, runs them, and raises
BuildFailure at the end of the pass if anything failed.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from treebuild.core.exceptions import BuildFailure, ImportFailure, PhaseError, TreebuildError
from treebuild.workspace.environment import SOURCE_DIR_VAR, Environment
from treebuild.workspace.package import Phase

if TYPE_CHECKING:
    from treebuild.workspace.manifest import Manifest
    from treebuild.workspace.package import Package

logger = logging.getLogger(__name__)


class BuildDriver(Protocol):
    """Contract of the callable that performs a build pass."""

    def __call__(self, package_names: Sequence[str], operation: str, phases: Sequence[str]) -> None: ...


@dataclass
class BuildSettings:
    """Pass-wide flags shared between the orchestrator and the driver.

    Attributes:
        do_rebuild: Set while rebuild_packages cleans the selection.
        do_forced_build: Run every phase of every package touched.
    """

    do_rebuild: bool = False
    do_forced_build: bool = False


class SequentialBuildDriver:
    """Default driver: builds packages one at a time, dependencies first."""

    def __init__(
        self,
        manifest: Manifest,
        settings: BuildSettings | None = None,
        environment: Environment | None = None,
        keep_going: bool = False,
    ) -> None:
        self.manifest = manifest
        self.settings = settings or BuildSettings()
        self.environment = environment or Environment()
        self.keep_going = keep_going
        self.environment.set(SOURCE_DIR_VAR, str(manifest.root_dir))

    def build_order(self, package_names: Sequence[str]) -> list[str]:
        """Return package_names sorted so that dependencies come first.

        Dependencies outside package_names are ignored; cycles are broken
        at the first package seen twice.
        """
        enabled = set(package_names)
        order: list[str] = []
        visiting: set[str] = set()

        def visit(name: str) -> None:
            if name in order or name in visiting:
                return
            visiting.add(name)
            for dep in self.manifest.find_package(name).dependencies:
                if dep in enabled:
                    visit(dep)
            visiting.discard(name)
            order.append(name)

        for name in package_names:
            visit(name)
        return order

    def __call__(self, package_names: Sequence[str], operation: str, phases: Sequence[str]) -> None:
        targets = [Phase(p) for p in phases]
        last = max(targets, key=list(Phase).index) if targets else Phase.BUILD
        wanted = list(Phase)[: list(Phase).index(last) + 1]

        logger.debug(f"{operation}: running {', '.join(p.value for p in wanted)} on {len(package_names)} packages")
        errors: dict[str, str] = {}
        for name in package_names:
            self.manifest.find_package(name).start_pass()

        for name in self.build_order(package_names):
            package = self.manifest.find_package(name)
            failed_deps = [d for d in package.dependencies if d in errors]
            if failed_deps:
                logger.warning(f"{name}: skipped, dependencies failed: {', '.join(failed_deps)}")
                continue
            try:
                self._process(package, wanted)
            except TreebuildError as e:
                package.failed = True
                errors[name] = str(e)
                logger.error(f"{name}: {e}")
                if not self.keep_going:
                    break

        if errors:
            failed = list(errors)
            raise BuildFailure(
                message=f"{operation} failed for {', '.join(failed)}",
                failed_packages=failed,
                errors=errors,
            )

    def _process(self, package: Package, phases: list[Phase]) -> None:
        if package.kind == "dummy":
            return
        prefix = self.manifest.install_dir or (self.manifest.root_dir / "install")
        forced = self.settings.do_forced_build
        for phase in phases:
            if package.completed(phase) and not package.forced:
                continue
            if not package.needs(phase, forced=forced):
                package.mark_completed(phase)
                continue

            package.mark_invoked(phase)
            if phase == Phase.IMPORT:
                self._import(package)
            else:
                self._run_phase(package, phase, Path(prefix))
            package.mark_completed(phase)
        package.forced = False

    def _import(self, package: Package) -> None:
        if package.importer is None:
            raise ImportFailure(
                message=f"{package.name}: {package.srcdir} does not exist and the package has no importer",
                package=package.name,
            )
        try:
            package.importer.import_package(package)
        except OSError as e:
            raise ImportFailure(
                message=f"{package.name}: import failed: {e}",
                package=package.name,
            ) from e
        if package.build_system is not None:
            package.build_system.post_import(package, self.environment)

    def _run_phase(self, package: Package, phase: Phase, prefix: Path) -> None:
        system = package.build_system
        if system is None:
            return
        package.remove_stamp(phase)
        try:
            if phase == Phase.PREPARE:
                system.prepare(package, self.environment, prefix)
            else:
                system.build(package, self.environment, prefix)
        except OSError as e:
            raise PhaseError(
                message=f"{package.name}: {phase.value} failed: {e}",
                package=package.name,
                phase=phase.value,
            ) from e
        package.touch_stamp(phase)
