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

"""Tests for treebuild.paths module."""

from __future__ import annotations

from pathlib import Path

from treebuild import paths


class TestResolvePaths:
    def test_expands_and_resolves(self, temp_home: Path) -> None:
        resolved = paths.resolve_paths({"paths": {"cache_root": "~/cache"}})

        assert resolved["cache_root"] == (temp_home / "cache").resolve()

    def test_missing_section(self) -> None:
        assert paths.resolve_paths({}) == {}


class TestEnsureDirectories:
    def test_creates_configured_directories(self, temp_home: Path, mock_config: Path) -> None:
        created = paths.ensure_directories()

        for key in ("cache_root", "archive_cache", "runs_root"):
            assert created[key].is_dir()

    def test_explicit_paths(self, tmp_path: Path) -> None:
        created = paths.ensure_directories({"archive_cache": str(tmp_path / "a"), "other": str(tmp_path / "b")})

        assert created["archive_cache"].is_dir()
        # Only the known cache directories are created
        assert not (tmp_path / "b").exists()
