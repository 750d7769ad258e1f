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

"""Load context for package definition files.

A LoadContext is created for every definition file that gets loaded and is
handed down explicitly to whatever needs to attribute an error or a package
to its declaration. Narrowing it to one entry of the file is done with
``at(line)``, which returns a new frame.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from treebuild.core.exceptions import ConfigError


@dataclass(frozen=True)
class LoadContext:
    """Where a definition is being read from.

    Attributes:
        source_name: Name of the package source the file belongs to.
        path: Path of the definition file.
        local: Whether the source lives in the workspace (as opposed to a
            checked-out remote package set).
        line: 1-based line of the entry being processed, if known.
    """

    source_name: str
    path: Path
    local: bool = True
    line: int | None = None

    @property
    def file_name(self) -> str:
        return self.path.name

    def at(self, line: int | None) -> LoadContext:
        """Return a copy of this context pointing at the given line."""
        return replace(self, line=line)

    def error(self, message: str) -> ConfigError:
        """Build a ConfigError located at this context."""
        return ConfigError(
            message=message,
            path=str(self.path),
            line=self.line,
            source_name=self.source_name,
            local=self.local,
        )

    def describe(self) -> str:
        loc = str(self.path) if self.local else f"{self.file_name}(source={self.source_name})"
        return f"{loc}:{self.line}" if self.line is not None else loc
