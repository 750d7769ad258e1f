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

"""Tests for treebuild.build.systems module."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest import mock

import pytest

from treebuild.build.systems import (
    AutotoolsBuildSystem,
    BuildSystem,
    CMakeBuildSystem,
    OrogenBuildSystem,
    RubyBuildSystem,
    create_build_system,
    run_command,
)
from treebuild.core.exceptions import ConfigError, PhaseError
from treebuild.workspace.environment import LIBRARY_PATH_VAR, Environment
from treebuild.workspace.package import Package


@pytest.fixture
def package(tmp_path: Path) -> Package:
    srcdir = tmp_path / "ws" / "base" / "types"
    srcdir.mkdir(parents=True)
    return Package(name="base/types", srcdir=srcdir, kind="cmake")


class TestRunCommand:
    def test_returns_output_and_logs(self, tmp_path: Path) -> None:
        log = tmp_path / "logs" / "x.log"

        rc, output = run_command([sys.executable, "-c", "print('hello')"], log_path=log)

        assert rc == 0
        assert output.strip() == "hello"
        assert "hello" in log.read_text()
        assert log.read_text().startswith("$ ")

    def test_non_zero_exit(self) -> None:
        rc, _output = run_command([sys.executable, "-c", "import sys; sys.exit(3)"])

        assert rc == 3


class TestBuildSystemRun:
    def test_failure_raises_phase_error(self, package: Package, tmp_path: Path) -> None:
        system = BuildSystem(log_dir=tmp_path / "logs")

        with mock.patch("treebuild.build.systems.run_command", return_value=(2, "make: *** error\n")):
            with pytest.raises(PhaseError) as exc_info:
                system.run(package, "build", ["make"], Environment())

        err = exc_info.value
        assert err.package == "base/types"
        assert err.phase == "build"
        assert err.command == ["make"]
        assert err.log_path == str(tmp_path / "logs" / "base-types-build.log")
        assert str(err) == "base/types: build failed, make exited with 2: make: *** error"

    def test_missing_tool(self, package: Package) -> None:
        with pytest.raises(PhaseError, match="cannot run treebuild-no-such-tool"):
            BuildSystem().run(package, "build", ["treebuild-no-such-tool"], Environment())

    def test_runs_in_source_directory_with_environment(self, package: Package) -> None:
        env = Environment()
        env.set("FOO", "bar")

        with mock.patch("treebuild.build.systems.run_command", return_value=(0, "")) as run:
            BuildSystem().run(package, "build", ["make"], env)

        _args, kwargs = run.call_args
        assert kwargs["cwd"] == package.srcdir
        assert kwargs["env"]["FOO"] == "bar"
        assert kwargs["log_path"] is None


class TestCMake:
    def test_prepare_and_build_commands(self, package: Package, tmp_path: Path) -> None:
        package.options = {"defines": {"CMAKE_BUILD_TYPE": "Release"}}
        system = CMakeBuildSystem()
        env = Environment()
        prefix = tmp_path / "install"

        with mock.patch.object(CMakeBuildSystem, "run") as run:
            system.prepare(package, env, prefix)
            system.build(package, env, prefix)

        commands = [c.args[2] for c in run.call_args_list]
        builddir = str(package.srcdir / "build")
        assert commands == [
            ["cmake", "-S", str(package.srcdir), "-B", builddir, f"-DCMAKE_INSTALL_PREFIX={prefix}",
             "-DCMAKE_BUILD_TYPE=Release"],
            ["cmake", "--build", builddir],
            ["cmake", "--install", builddir],
        ]
        assert env.paths[LIBRARY_PATH_VAR] == [str(prefix / "lib")]

    def test_clean_removes_build_directory(self, package: Package) -> None:
        (package.srcdir / "build" / "CMakeFiles").mkdir(parents=True)

        CMakeBuildSystem().clean(package)

        assert not (package.srcdir / "build").exists()
        assert package.srcdir.exists()

    def test_forced_build_only_drops_cache(self, package: Package) -> None:
        builddir = package.srcdir / "build"
        builddir.mkdir()
        (builddir / "CMakeCache.txt").write_text("")
        (builddir / "libtypes.so").write_text("")

        CMakeBuildSystem().prepare_for_forced_build(package)

        assert not (builddir / "CMakeCache.txt").exists()
        assert (builddir / "libtypes.so").exists()


class TestOrogen:
    def test_generates_before_cmake(self, package: Package, tmp_path: Path) -> None:
        with mock.patch.object(OrogenBuildSystem, "run") as run:
            OrogenBuildSystem().prepare(package, Environment(), tmp_path)

        commands = [c.args[2] for c in run.call_args_list]
        assert commands[0] == ["orogen", "--corba", "types.orogen"]
        assert commands[1][0] == "cmake"


class TestAutotools:
    def test_autoreconf_only_without_configure(self, package: Package, tmp_path: Path) -> None:
        system = AutotoolsBuildSystem()
        with mock.patch.object(AutotoolsBuildSystem, "run") as run:
            system.prepare(package, Environment(), tmp_path)
            (package.srcdir / "configure").write_text("")
            system.prepare(package, Environment(), tmp_path)

        commands = [c.args[2][0] for c in run.call_args_list]
        assert commands == ["autoreconf", "./configure", "./configure"]

    def test_forced_build_removes_config_status(self, package: Package) -> None:
        (package.srcdir / "config.status").write_text("")

        AutotoolsBuildSystem().prepare_for_forced_build(package)

        assert not (package.srcdir / "config.status").exists()

    def test_clean_runs_distclean(self, package: Package) -> None:
        (package.srcdir / "Makefile").write_text("")

        with mock.patch("treebuild.build.systems.run_command", return_value=(0, "")) as run:
            AutotoolsBuildSystem().clean(package)

        assert run.call_args.args[0] == ["make", "distclean"]

    def test_clean_without_make_raises_phase_error(self, package: Package) -> None:
        (package.srcdir / "Makefile").write_text("")

        with mock.patch("treebuild.build.systems.run_command", side_effect=FileNotFoundError(2, "No such file")):
            with pytest.raises(PhaseError, match="cannot run make") as exc_info:
                AutotoolsBuildSystem().clean(package)

        assert exc_info.value.phase == "clean"

    def test_failed_distclean_raises_phase_error(self, package: Package) -> None:
        (package.srcdir / "Makefile").write_text("")

        with mock.patch("treebuild.build.systems.run_command", return_value=(2, "")):
            with pytest.raises(PhaseError, match="clean failed, make exited with 2"):
                AutotoolsBuildSystem().clean(package)


class TestRuby:
    def test_post_import_adds_lib_to_rubylib(self, package: Package) -> None:
        (package.srcdir / "lib").mkdir()
        env = Environment()

        RubyBuildSystem().post_import(package, env)

        assert env.paths["RUBYLIB"] == [str(package.srcdir / "lib")]

    def test_build_runs_rake_when_rakefile_exists(self, package: Package, tmp_path: Path) -> None:
        (package.srcdir / "Rakefile").write_text("")
        package.options = {"rake_setup_task": "setup"}

        with mock.patch.object(RubyBuildSystem, "run") as run:
            RubyBuildSystem().build(package, Environment(), tmp_path)

        assert run.call_args.args[2] == ["rake", "setup"]

    def test_clean_removes_ext_build_dirs(self, package: Package) -> None:
        build_dir = package.srcdir / "ext" / "native" / "build"
        build_dir.mkdir(parents=True)
        (package.srcdir / "ext" / "native" / "Makefile").write_text("")

        with mock.patch("treebuild.build.systems.run_command", return_value=(0, "")) as run:
            RubyBuildSystem().clean(package)

        assert not build_dir.exists()
        assert run.call_args.args[0] == ["make", "-C", str(package.srcdir / "ext" / "native"), "clean"]

    def test_forced_build_removes_generated_files(self, package: Package) -> None:
        native = package.srcdir / "ext" / "native"
        native.mkdir(parents=True)
        (native / "Makefile").write_text("")
        (native / "extconf.rb").write_text("")

        RubyBuildSystem().prepare_for_forced_build(package)

        assert not (native / "Makefile").exists()
        assert (native / "extconf.rb").exists()

    def test_default_exclude(self) -> None:
        assert "Makefile$" in RubyBuildSystem.default_exclude
        assert CMakeBuildSystem.default_exclude == ()


class TestCreateBuildSystem:
    def test_known_kinds(self, tmp_path: Path) -> None:
        system = create_build_system("cmake", log_dir=tmp_path)

        assert isinstance(system, CMakeBuildSystem)
        assert system.log_dir == tmp_path
        assert type(create_build_system("import")) is BuildSystem

    def test_unknown_kind(self) -> None:
        with pytest.raises(ConfigError, match="unknown package type 'scons'"):
            create_build_system("scons")
