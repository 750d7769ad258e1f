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

"""Tests for treebuild.workspace.package module."""

from __future__ import annotations

import re
from pathlib import Path
from unittest import mock

from treebuild.workspace.package import STAMPS_DIR, Package, Phase


def make_package(tmp_path: Path, **kwargs: object) -> Package:
    srcdir = tmp_path / "pkg"
    srcdir.mkdir()
    return Package(name="pkg", srcdir=srcdir, **kwargs)  # type: ignore[arg-type]


class TestStamps:
    def test_touch_and_clear(self, tmp_path: Path) -> None:
        pkg = make_package(tmp_path)

        pkg.touch_stamp(Phase.BUILD)

        assert (pkg.srcdir / STAMPS_DIR / "build.stamp").exists()
        assert pkg.has_stamp(Phase.BUILD)
        pkg.clear_stamps()
        assert not pkg.has_stamp(Phase.BUILD)

    def test_remove_missing_stamp(self, tmp_path: Path) -> None:
        make_package(tmp_path).remove_stamp(Phase.PREPARE)


class TestNeeds:
    def test_import_needed_only_without_sources(self, tmp_path: Path) -> None:
        pkg = Package(name="pkg", srcdir=tmp_path / "pkg")

        assert pkg.needs(Phase.IMPORT)
        pkg.srcdir.mkdir()
        assert not pkg.needs(Phase.IMPORT)
        assert not pkg.needs(Phase.IMPORT, forced=True)

    def test_stamped_phase_not_needed_unless_forced(self, tmp_path: Path) -> None:
        pkg = make_package(tmp_path)
        pkg.touch_stamp(Phase.PREPARE)

        assert not pkg.needs(Phase.PREPARE)
        assert pkg.needs(Phase.PREPARE, forced=True)
        pkg.forced = True
        assert pkg.needs(Phase.PREPARE)


class TestMarkers:
    def test_invoked_and_completed(self, tmp_path: Path) -> None:
        pkg = make_package(tmp_path)

        pkg.mark_invoked(Phase.PREPARE)
        pkg.mark_completed(Phase.PREPARE)

        assert pkg.prepare_invoked
        assert pkg.prepared
        assert pkg.completed(Phase.PREPARE)
        assert not pkg.completed(Phase.BUILD)


class TestInvalidation:
    def test_prepare_for_rebuild_cleans(self, tmp_path: Path) -> None:
        system = mock.MagicMock()
        pkg = make_package(tmp_path, build_system=system, prepared=True, built=True)
        pkg.touch_stamp(Phase.BUILD)

        pkg.prepare_for_rebuild()

        system.clean.assert_called_once_with(pkg)
        assert not pkg.has_stamp(Phase.BUILD)
        assert not pkg.prepared
        assert not pkg.built
        assert not pkg.forced

    def test_prepare_for_forced_build_keeps_byproducts(self, tmp_path: Path) -> None:
        system = mock.MagicMock()
        pkg = make_package(tmp_path, build_system=system, built=True)
        pkg.touch_stamp(Phase.BUILD)

        pkg.prepare_for_forced_build()

        system.clean.assert_not_called()
        system.prepare_for_forced_build.assert_called_once_with(pkg)
        assert pkg.has_stamp(Phase.BUILD)
        assert pkg.forced
        assert not pkg.built

    def test_start_pass_keeps_completion(self, tmp_path: Path) -> None:
        pkg = make_package(tmp_path, build_invoked=True, built=True, failed=True)

        pkg.start_pass()

        assert not pkg.build_invoked
        assert not pkg.failed
        assert pkg.built


class TestExclude:
    def test_patterns_are_searched(self, tmp_path: Path) -> None:
        pkg = make_package(tmp_path, exclude=[re.compile(r"\.so$"), re.compile("^build/")])

        assert pkg.excluded("ext/native/native.so")
        assert pkg.excluded("build/CMakeCache.txt")
        assert not pkg.excluded("src/build/main.c")

    def test_nothing_excluded_by_default(self, tmp_path: Path) -> None:
        assert not make_package(tmp_path).excluded("lib/native.so")
