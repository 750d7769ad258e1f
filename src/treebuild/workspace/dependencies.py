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

"""Dependency classification: OS package or source package.

Every dependency a package declares is routed either to the OS dependency
registry or to another source package of the workspace. A name known to
the OS registry is an OS dependency unless the workspace explicitly
selected it as a source package.

When a name is neither, the OS resolver is asked again for that single name
only to get its diagnostic, which is more useful to the user than "package
does not exist". The resolver answer is never used to reclassify the
dependency.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from treebuild.core.exceptions import (
    ConfigError,
    OSDependencyError,
    PackageNotFoundError,
    TreebuildError,
    UnresolvedDependencyError,
)

if TYPE_CHECKING:
    from treebuild.core.context import LoadContext
    from treebuild.workspace.manifest import Manifest
    from treebuild.workspace.package import Package

logger = logging.getLogger(__name__)


class DependencyKind(str, Enum):
    OS_PACKAGE = "os_package"
    SOURCE_PACKAGE = "source_package"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class Resolution:
    """Outcome of classifying one dependency of one package."""

    name: str
    kind: DependencyKind
    error: TreebuildError | None = None

    @property
    def resolved(self) -> bool:
        return self.kind != DependencyKind.UNRESOLVED

    @property
    def reason(self) -> str:
        return str(self.error) if self.error is not None else ""

    def unwrap(self) -> Resolution:
        """Return self, or raise the error of an unresolved dependency."""
        if self.error is not None:
            raise self.error
        return self


def classify(
    manifest: Manifest,
    package: Package,
    dependency_name: str,
    explicitly_selected: bool,
    context: LoadContext | None = None,
) -> Resolution:
    """Classify dependency_name for package and record it on the package.

    Args:
        manifest: Workspace manifest holding both registries.
        package: Package declaring the dependency. Its dependency sets are
            updated; the registries are not.
        dependency_name: Declared dependency.
        explicitly_selected: Whether the name is pinned to a source package.
        context: Declaration site, used to locate configuration errors.

    Returns:
        A Resolution. Unresolved results carry a ConfigError when the name
        was pinned, and an UnresolvedDependencyError holding the OS
        resolver's diagnostic otherwise.
    """
    if manifest.osdeps.has(dependency_name) and not explicitly_selected:
        package.add_os_package(dependency_name)
        return Resolution(dependency_name, DependencyKind.OS_PACKAGE)

    try:
        manifest.register_dependency(package, dependency_name)
    except PackageNotFoundError as e:
        if explicitly_selected:
            context = context or package.definition
            error = context.error(e.message) if context is not None else ConfigError(message=e.message)
            return Resolution(dependency_name, DependencyKind.UNRESOLVED, error)
        return Resolution(
            dependency_name,
            DependencyKind.UNRESOLVED,
            _os_resolver_diagnostic(manifest, package, dependency_name),
        )

    return Resolution(dependency_name, DependencyKind.SOURCE_PACKAGE)


def _os_resolver_diagnostic(manifest: Manifest, package: Package, name: str) -> UnresolvedDependencyError:
    os_names, _other = manifest.osdeps.partition_packages([name])
    try:
        manifest.osdeps.resolve_os_dependencies(os_names)
    except OSDependencyError as e:
        return UnresolvedDependencyError(message=e.message, package=package.name, dependency=name)

    logger.debug(f"OS resolver accepted {name} for {package.name}, reporting it as unresolved anyway")
    return UnresolvedDependencyError(
        message=f"{name} is neither a source package nor a known OS dependency",
        package=package.name,
        dependency=name,
    )


def depends_on(
    manifest: Manifest,
    package: Package,
    dependency_name: str,
    context: LoadContext | None = None,
) -> Resolution:
    """Declare that package depends on dependency_name.

    Raises:
        ConfigError: The name is explicitly selected but no such source
            package exists.
        UnresolvedDependencyError: The name resolves nowhere.
    """
    explicit = manifest.explicitly_selected_package(dependency_name)
    resolution = classify(manifest, package, dependency_name, explicit, context=context)
    if resolution.resolved:
        logger.debug(f"{package.name}: {dependency_name} is a {resolution.kind.value} dependency")
    return resolution.unwrap()
