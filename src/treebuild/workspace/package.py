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

"""Source package model.

A Package is created once when it is declared and then mutated by the build
driver as it goes through its phases. It is never removed during a run since
the build report reads its phase markers at the end.
"""

from __future__ import annotations

import contextlib
import re
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from treebuild.build.systems import BuildSystem
    from treebuild.core.context import LoadContext
    from treebuild.importers.base import Importer

# Directory, relative to the package source directory, holding phase stamps
STAMPS_DIR = ".treebuild"


class Phase(str, Enum):
    """Build phases, in execution order."""

    IMPORT = "import"
    PREPARE = "prepare"
    BUILD = "build"


@dataclass
class Package:
    """A named source package of the workspace.

    Attributes:
        name: Unique package name.
        srcdir: Source directory.
        kind: Package kind ("cmake", "autotools", "ruby", "orogen",
            "import" or "dummy").
        dependencies: Source package dependencies, in declaration order.
        os_packages: OS dependencies this package resolved to.
        importer: How the sources are fetched, if at all.
        build_system: Driver for the native build system.
        definition: Where the package was declared.
        forced: Set by a force-build invalidation; makes every phase run
            again regardless of stamps.
        exclude: Patterns of source paths importers leave out.
    """

    name: str
    srcdir: Path
    kind: str = "import"
    dependencies: list[str] = field(default_factory=list)
    os_packages: set[str] = field(default_factory=set)
    importer: Importer | None = None
    build_system: BuildSystem | None = None
    definition: LoadContext | None = None
    options: dict[str, Any] = field(default_factory=dict)
    exclude: list[re.Pattern[str]] = field(default_factory=list)
    forced: bool = False

    import_invoked: bool = False
    imported: bool = False
    prepare_invoked: bool = False
    prepared: bool = False
    build_invoked: bool = False
    built: bool = False
    failed: bool = False

    def add_dependency(self, name: str) -> None:
        if name not in self.dependencies:
            self.dependencies.append(name)

    def add_os_package(self, name: str) -> None:
        self.os_packages.add(name)

    def excluded(self, path: str) -> bool:
        """Return True if importers should leave path out of the sources."""
        return any(pattern.search(path) for pattern in self.exclude)

    # Phase stamps

    @property
    def stamps_dir(self) -> Path:
        return self.srcdir / STAMPS_DIR

    def stamp_path(self, phase: Phase) -> Path:
        return self.stamps_dir / f"{phase.value}.stamp"

    def has_stamp(self, phase: Phase) -> bool:
        return self.stamp_path(phase).exists()

    def touch_stamp(self, phase: Phase) -> None:
        self.stamps_dir.mkdir(parents=True, exist_ok=True)
        self.stamp_path(phase).touch()

    def clear_stamps(self) -> None:
        if self.stamps_dir.is_dir():
            shutil.rmtree(self.stamps_dir)

    def needs(self, phase: Phase, *, forced: bool = False) -> bool:
        """Return True if the phase still has to run for this package."""
        if phase == Phase.IMPORT:
            return not self.srcdir.exists()
        if self.forced or forced:
            return True
        return not self.has_stamp(phase)

    # Phase markers

    def start_pass(self) -> None:
        """Forget what the previous build pass did to this package.

        Completion flags are kept: a completed phase stays completed.
        """
        self.import_invoked = False
        self.prepare_invoked = False
        self.build_invoked = False
        self.failed = False

    def mark_invoked(self, phase: Phase) -> None:
        setattr(self, f"{phase.value}_invoked", True)

    def mark_completed(self, phase: Phase) -> None:
        if phase == Phase.IMPORT:
            self.imported = True
        elif phase == Phase.PREPARE:
            self.prepared = True
        else:
            self.built = True

    def completed(self, phase: Phase) -> bool:
        return {Phase.IMPORT: self.imported, Phase.PREPARE: self.prepared, Phase.BUILD: self.built}[phase]

    # Invalidation

    def prepare_for_rebuild(self) -> None:
        """Remove build byproducts so that the next build starts clean.

        Fetched sources are left alone.
        """
        if self.build_system is not None:
            self.build_system.clean(self)
        self.clear_stamps()
        self.prepared = False
        self.built = False

    def prepare_for_forced_build(self) -> None:
        """Make every build phase run again without cleaning first."""
        if self.build_system is not None:
            self.build_system.prepare_for_forced_build(self)
        self.forced = True
        self.prepared = False
        self.built = False

    def remove_stamp(self, phase: Phase) -> None:
        with contextlib.suppress(FileNotFoundError):
            self.stamp_path(phase).unlink()
