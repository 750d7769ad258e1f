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

"""Pytest fixtures and configuration for Treebuild tests."""

from __future__ import annotations

import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import responses

from treebuild.osdeps import OperatingSystem, OSDependencies
from treebuild.workspace.manifest import Manifest
from treebuild.workspace.package import Package


@pytest.fixture
def temp_home(monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Create a temporary home directory and set HOME/XDG paths."""
    with tempfile.TemporaryDirectory() as tmpdir:
        home = Path(tmpdir)
        monkeypatch.setenv("HOME", str(home))
        monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
        monkeypatch.setenv("XDG_CACHE_HOME", str(home / ".cache"))
        # Also patch Path.home() to return our temp home
        monkeypatch.setattr(Path, "home", lambda: home)
        yield home


@pytest.fixture
def mock_config(temp_home: Path) -> Path:
    """Create a minimal config file in the temp home."""
    config_dir = temp_home / ".config" / "treebuild"
    config_dir.mkdir(parents=True, exist_ok=True)
    config_file = config_dir / "config.yaml"
    config_file.write_text("""
paths:
  cache_root: "~/.cache/treebuild"
  archive_cache: "~/.cache/treebuild/archives"
  runs_root: "~/.cache/treebuild/runs"

defaults:
  build_report: true
  keep_going: false
  operating_system: "ubuntu,debian 24.04,noble"

behavior:
  verbose: false
""")
    return config_file


@pytest.fixture
def mock_responses() -> Generator[responses.RequestsMock, None, None]:
    """Activate responses mock for HTTP requests."""
    with responses.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def ubuntu() -> OperatingSystem:
    return OperatingSystem(names=("ubuntu", "debian"), versions=("24.04", "noble"))


@pytest.fixture
def osdeps(ubuntu: OperatingSystem) -> OSDependencies:
    """OS dependency registry with a few typical definitions."""
    registry = OSDependencies(operating_system=ubuntu)
    registry.merge(
        {
            "boost": {"ubuntu,debian": "libboost-all-dev", "fedora": "boost-devel"},
            "cmake": "cmake",
            "pkg-config": "ignore",
            "nokogiri": "gem",
            "qt": {"fedora": "qt5-qtbase-devel"},
            "eigen": {"ubuntu": {"22.04": "libeigen3-dev"}},
        }
    )
    return registry


@pytest.fixture
def manifest(tmp_path: Path, osdeps: OSDependencies) -> Manifest:
    """Empty manifest rooted in a temporary workspace."""
    return Manifest(root_dir=tmp_path, osdeps=osdeps)


@pytest.fixture
def add_package(manifest: Manifest) -> Callable[..., Package]:
    """Return a helper registering a package in the manifest."""

    def _add(name: str, **kwargs: object) -> Package:
        package = Package(name=name, srcdir=manifest.root_dir / name, **kwargs)  # type: ignore[arg-type]
        return manifest.register_package(package)

    return _add
