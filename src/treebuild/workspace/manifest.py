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

"""Workspace manifest: the registry of source packages.

The manifest owns every Package of the workspace together with the OS
dependency registry. It answers the questions the dependency classifier and
the build orchestrator ask (is this name a source package, was it explicitly
selected, which packages are in the layout) but does not decide anything by
itself.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from treebuild.core.exceptions import PackageNotFoundError
from treebuild.osdeps import OSDependencies

if TYPE_CHECKING:
    from treebuild.core.context import LoadContext
    from treebuild.workspace.package import Package

logger = logging.getLogger(__name__)


@dataclass
class Manifest:
    """Registry of the source packages of a workspace.

    Attributes:
        root_dir: Workspace root; package source directories live below it.
        osdeps: OS dependency registry.
        install_dir: Install prefix shared by all packages.
        layout: Package names built by default, in order. Empty means every
            registered package.
        explicit_selection: Names that must resolve to source packages even
            when an OS dependency of the same name exists.
        ignore_patterns: Regexes of package names that are not built.
    """

    root_dir: Path
    osdeps: OSDependencies = field(default_factory=OSDependencies)
    install_dir: Path | None = None
    layout: list[str] = field(default_factory=list)
    explicit_selection: set[str] = field(default_factory=set)
    ignore_patterns: list[str] = field(default_factory=list)
    packages: dict[str, Package] = field(default_factory=dict)
    definition_sources: dict[str, LoadContext] = field(default_factory=dict)
    exclusions: dict[str, str] = field(default_factory=dict)
    build_system_dependencies: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        if self.install_dir is None:
            self.install_dir = self.root_dir / "install"

    def register_package(self, package: Package, context: LoadContext | None = None) -> Package:
        """Add a package to the registry.

        Raises:
            ValueError: If a package with the same name is already registered.
        """
        if package.name in self.packages:
            raise ValueError(f"package {package.name} is already defined")
        self.packages[package.name] = package
        if context is not None:
            self.definition_sources[package.name] = context
            package.definition = context
        return package

    def find_package(self, name: str) -> Package:
        """Return the package called name.

        Raises:
            PackageNotFoundError: If no such source package is defined.
        """
        try:
            return self.packages[name]
        except KeyError:
            raise PackageNotFoundError(message=f"package {name} does not exist", package=name) from None

    def has_package(self, name: str) -> bool:
        return name in self.packages

    def definition_source(self, name: str) -> str:
        context = self.definition_sources.get(name)
        return context.describe() if context is not None else "<unknown>"

    def explicitly_selected_package(self, name: str) -> bool:
        return name in self.explicit_selection

    def ignored(self, name: str) -> bool:
        return any(re.fullmatch(pattern, name) for pattern in self.ignore_patterns)

    def add_exclusion(self, name: str, reason: str) -> None:
        logger.debug(f"excluding {name}: {reason}")
        self.exclusions[name] = reason

    def excluded(self, name: str) -> bool:
        return name in self.exclusions

    def add_build_system_dependency(self, name: str) -> None:
        """Record an OS dependency needed by a build system (e.g. cmake)."""
        self.build_system_dependencies.add(name)

    def register_dependency(self, package: Package, name: str) -> None:
        """Record that package depends on the source package called name.

        Raises:
            PackageNotFoundError: If name is not a defined source package.
        """
        self.find_package(name)
        package.add_dependency(name)

    def all_layout_packages(self) -> list[str]:
        """Return the packages built when no explicit selection is given."""
        names = self.layout or list(self.packages)
        return [n for n in names if not self.excluded(n) and not self.ignored(n)]

    def resolve_enabled(self, selected: Iterable[str]) -> list[str]:
        """Return selected plus all their source dependencies.

        Selected packages come first in the given order, followed by the
        dependencies in discovery order.
        """
        enabled: list[str] = []
        pending = list(selected)
        while pending:
            name = pending.pop(0)
            if name in enabled:
                continue
            package = self.find_package(name)
            enabled.append(name)
            pending.extend(d for d in package.dependencies if d not in enabled)
        return enabled
