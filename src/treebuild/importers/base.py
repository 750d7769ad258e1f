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

"""Importer interface and the snapshot capability.

An importer fetches the sources of a package. Importers that can describe
exactly what they fetched implement ``snapshot``, which returns a flat
string mapping ("snapshot descriptor") from which the same sources can be
obtained again, on this machine or another one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar, Protocol, runtime_checkable

if TYPE_CHECKING:
    from treebuild.workspace.package import Package


@runtime_checkable
class Snapshottable(Protocol):
    """Capability of producing a snapshot descriptor for a package."""

    def snapshot(self, package: Package, target_dir: Path) -> dict[str, str]:
        """Describe what is currently checked out for package.

        Only target_dir may be written to; the package's source tree is
        left untouched.
        """
        ...


class Importer(ABC):
    """Base class of the source importers."""

    kind: ClassVar[str]

    @abstractmethod
    def import_package(self, package: Package) -> None:
        """Fetch the sources of package into package.srcdir."""

    @abstractmethod
    def snapshot(self, package: Package, target_dir: Path) -> dict[str, str]:
        """See Snapshottable.snapshot."""
