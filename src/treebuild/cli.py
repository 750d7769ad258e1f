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

"""CLI application definition for Treebuild."""

from __future__ import annotations

from typer import Typer

from treebuild.commands.build import build
from treebuild.commands.osdeps import osdeps
from treebuild.commands.snapshot import snapshot

app: Typer = Typer(
    name="treebuild",
    help="A meta-build tool for heterogeneous source workspaces.",
    add_completion=False,
)

# Register commands
app.command(name="build")(build)
app.command(name="snapshot")(snapshot)
app.command(name="osdeps")(osdeps)
