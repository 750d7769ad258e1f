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

"""Native build system drivers.

Each package kind maps to a BuildSystem that knows how to configure, build,
clean and force-rebuild a package with its native tools. The drivers only
run commands; deciding which phase runs when belongs to the build driver.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from treebuild.core.exceptions import ConfigError, PhaseError
from treebuild.workspace.environment import LIBRARY_PATH_VAR, Environment

if TYPE_CHECKING:
    from treebuild.workspace.package import Package

logger = logging.getLogger(__name__)


def run_command(
    cmd: Sequence[str],
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    log_path: Path | None = None,
) -> tuple[int, str]:
    """Run a command and return its exit code and combined output.

    Args:
        cmd: Command and arguments to run.
        cwd: Working directory for the command.
        env: Full environment for the command (defaults to os.environ).
        log_path: If given, the command line and its output are appended
            to this file.

    Returns:
        Tuple of (exit_code, output).
    """
    result = subprocess.run(
        list(cmd),
        cwd=cwd,
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
    )
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with log_path.open("a", encoding="utf-8") as f:
            f.write(f"$ {' '.join(cmd)}\n")
            f.write(result.stdout or "")
    return result.returncode, result.stdout or ""


class BuildSystem:
    """Base build system: nothing to prepare, nothing to build."""

    kind: ClassVar[str] = "import"
    # Source paths (regexes) importers leave out for this kind of package
    default_exclude: ClassVar[tuple[str, ...]] = ()

    def __init__(self, log_dir: Path | None = None) -> None:
        self.log_dir = log_dir

    def log_path(self, package: Package, phase: str) -> Path | None:
        if self.log_dir is None:
            return None
        return self.log_dir / f"{package.name.replace('/', '-')}-{phase}.log"

    def run(
        self,
        package: Package,
        phase: str,
        cmd: Sequence[str],
        env: Environment,
        cwd: Path | None = None,
    ) -> None:
        """Run one command of a phase, raising PhaseError on failure."""
        log_path = self.log_path(package, phase)
        logger.debug(f"{package.name}: running {' '.join(cmd)}")
        try:
            rc, output = run_command(cmd, cwd=cwd or package.srcdir, env=env.as_dict(), log_path=log_path)
        except FileNotFoundError as e:
            raise PhaseError(
                message=f"{package.name}: cannot run {cmd[0]}: {e.strerror}",
                package=package.name,
                phase=phase,
                command=list(cmd),
            ) from e
        if rc != 0:
            last = output.strip().splitlines()[-1:] if output.strip() else []
            detail = f": {last[0]}" if last else ""
            raise PhaseError(
                message=f"{package.name}: {phase} failed, {cmd[0]} exited with {rc}{detail}",
                package=package.name,
                phase=phase,
                command=list(cmd),
                log_path=str(log_path) if log_path else None,
            )

    def post_import(self, package: Package, env: Environment) -> None:
        pass

    def prepare(self, package: Package, env: Environment, prefix: Path) -> None:
        pass

    def build(self, package: Package, env: Environment, prefix: Path) -> None:
        pass

    def clean(self, package: Package) -> None:
        """Remove build byproducts (rebuild invalidation)."""

    def prepare_for_forced_build(self, package: Package) -> None:
        """Drop cached configuration so that every step runs again."""


class CMakeBuildSystem(BuildSystem):
    kind = "cmake"

    def builddir(self, package: Package) -> Path:
        return package.srcdir / package.options.get("builddir", "build")

    def prepare(self, package: Package, env: Environment, prefix: Path) -> None:
        cmd = [
            "cmake",
            "-S", str(package.srcdir),
            "-B", str(self.builddir(package)),
            f"-DCMAKE_INSTALL_PREFIX={prefix}",
        ]
        for name, value in sorted(package.options.get("defines", {}).items()):
            cmd.append(f"-D{name}={value}")
        self.run(package, "prepare", cmd, env)

    def build(self, package: Package, env: Environment, prefix: Path) -> None:
        builddir = str(self.builddir(package))
        self.run(package, "build", ["cmake", "--build", builddir], env)
        self.run(package, "build", ["cmake", "--install", builddir], env)
        env.add_path(LIBRARY_PATH_VAR, prefix / "lib")
        env.add_path("PKG_CONFIG_PATH", prefix / "lib" / "pkgconfig")

    def clean(self, package: Package) -> None:
        builddir = self.builddir(package)
        if builddir.is_dir():
            logger.debug(f"{package.name}: removing {builddir}")
            shutil.rmtree(builddir)

    def prepare_for_forced_build(self, package: Package) -> None:
        cache = self.builddir(package) / "CMakeCache.txt"
        if cache.exists():
            cache.unlink()


class OrogenBuildSystem(CMakeBuildSystem):
    """oroGen packages: generate the CMake project, then build it."""

    kind = "orogen"

    def prepare(self, package: Package, env: Environment, prefix: Path) -> None:
        orogen_file = package.options.get("orogen_file") or f"{Path(package.name).name}.orogen"
        self.run(package, "prepare", ["orogen", "--corba", orogen_file], env)
        super().prepare(package, env, prefix)


class AutotoolsBuildSystem(BuildSystem):
    kind = "autotools"

    def prepare(self, package: Package, env: Environment, prefix: Path) -> None:
        if not (package.srcdir / "configure").exists():
            self.run(package, "prepare", ["autoreconf", "-fi"], env)
        cmd = ["./configure", f"--prefix={prefix}", *package.options.get("configure_flags", [])]
        self.run(package, "prepare", cmd, env)

    def build(self, package: Package, env: Environment, prefix: Path) -> None:
        self.run(package, "build", ["make"], env)
        self.run(package, "build", ["make", "install"], env)
        env.add_path(LIBRARY_PATH_VAR, prefix / "lib")
        env.add_path("PKG_CONFIG_PATH", prefix / "lib" / "pkgconfig")

    def clean(self, package: Package) -> None:
        if (package.srcdir / "Makefile").exists():
            self.run(package, "clean", ["make", "distclean"], Environment())

    def prepare_for_forced_build(self, package: Package) -> None:
        status = package.srcdir / "config.status"
        if status.exists():
            status.unlink()


class RubyBuildSystem(BuildSystem):
    """Ruby packages: lib/ goes on RUBYLIB, setup goes through rake."""

    kind = "ruby"
    default_exclude = (r"\.so$", r"Makefile$", r"mkmf.log$", r"\.o$")

    def post_import(self, package: Package, env: Environment) -> None:
        libdir = package.srcdir / "lib"
        if libdir.is_dir():
            env.add_path("RUBYLIB", libdir)

    def build(self, package: Package, env: Environment, prefix: Path) -> None:
        self.post_import(package, env)
        task = package.options.get("rake_setup_task", "default")
        if task and (package.srcdir / "Rakefile").is_file():
            self.run(package, "build", ["rake", task], env)

    def clean(self, package: Package) -> None:
        extdir = package.srcdir / "ext"
        if not extdir.is_dir():
            return
        for root, dirs, _files in os.walk(extdir):
            if "build" in dirs:
                shutil.rmtree(Path(root) / "build")
                dirs.remove("build")
        for makefile in extdir.rglob("Makefile"):
            self.run(package, "clean", ["make", "-C", str(makefile.parent), "clean"], Environment())

    def prepare_for_forced_build(self, package: Package) -> None:
        extdir = package.srcdir / "ext"
        if not extdir.is_dir():
            return
        for path in list(extdir.rglob("*")):
            if path.is_file() and path.name in ("Makefile", "CMakeCache.txt"):
                path.unlink()


BUILD_SYSTEMS: dict[str, type[BuildSystem]] = {
    "cmake": CMakeBuildSystem,
    "autotools": AutotoolsBuildSystem,
    "ruby": RubyBuildSystem,
    "orogen": OrogenBuildSystem,
    "import": BuildSystem,
    "dummy": BuildSystem,
}

# OS dependencies the build tool of a package kind needs
BUILD_TOOL_DEPENDENCIES: dict[str, str] = {
    "cmake": "cmake",
    "autotools": "autotools",
    "orogen": "cmake",
}


def create_build_system(kind: str, log_dir: Path | None = None) -> BuildSystem:
    """Return the build system for a package kind.

    Raises:
        ConfigError: If the kind is unknown.
    """
    try:
        cls = BUILD_SYSTEMS[kind]
    except KeyError:
        known = ", ".join(sorted(BUILD_SYSTEMS))
        raise ConfigError(message=f"unknown package type {kind!r} (expected one of {known})") from None
    return cls(log_dir=log_dir)
