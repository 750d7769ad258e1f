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

"""Treebuild-specific exception types with associated exit codes."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class TreebuildError(Exception):
    """Base class for Treebuild errors with an exit code."""

    message: str = "An error occurred"
    exit_code: int = field(default=1)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


@dataclass
class ConfigError(TreebuildError):
    """Configuration error, located at the declaring file and line.

    The location fields are filled in where the error is detected. Errors
    coming from a remote package source are shown with the file basename and
    the source name, since the full path is a local cache detail.
    """

    exit_code: int = field(default=1)
    path: str | None = None
    line: int | None = None
    source_name: str | None = None
    local: bool = True

    @property
    def location(self) -> str:
        if not self.path:
            return ""
        if self.local:
            loc = self.path
        else:
            loc = f"{Path(self.path).name}(source={self.source_name})"
        if self.line is not None:
            loc = f"{loc}:{self.line}"
        return loc

    def __str__(self) -> str:
        loc = self.location
        return f"{loc}: {self.message}" if loc else self.message


@dataclass
class PackageNotFoundError(TreebuildError):
    exit_code: int = field(default=2)
    package: str = ""


@dataclass
class OSDependencyError(TreebuildError):
    """Error raised by the OS dependency resolver with its own diagnostic."""

    exit_code: int = field(default=3)
    names: list[str] = field(default_factory=list)


@dataclass
class UnresolvedDependencyError(TreebuildError):
    """Dependency that is neither a source package nor an OS package."""

    exit_code: int = field(default=3)
    package: str = ""
    dependency: str = ""


@dataclass
class PhaseError(TreebuildError):
    """A single phase of a single package failed."""

    exit_code: int = field(default=4)
    package: str = ""
    phase: str = ""
    command: list[str] = field(default_factory=list)
    log_path: str | None = None


@dataclass
class BuildFailure(TreebuildError):
    """The build pass failed for one or more packages."""

    exit_code: int = field(default=4)
    failed_packages: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)


@dataclass
class ReportWriteFailure(TreebuildError):
    exit_code: int = field(default=5)
    path: str = ""


@dataclass
class SnapshotError(TreebuildError):
    exit_code: int = field(default=6)
    package: str = ""


@dataclass
class ImportFailure(TreebuildError):
    exit_code: int = field(default=7)
    package: str = ""
