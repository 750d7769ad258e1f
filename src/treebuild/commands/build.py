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

"""Implementation of `treebuild build` command.

Builds the selected packages and their dependencies. With --rebuild the
selected packages are cleaned first; with --force they go through every
build step again without being cleaned. The build report is written in the
logs directory of the run.
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer

from treebuild.build.driver import BuildSettings, SequentialBuildDriver
from treebuild.build.orchestrator import BuildOps, InvalidationRequest
from treebuild.build.reporter import Reporter
from treebuild.commands.common import open_workspace, selected_packages
from treebuild.core.exceptions import ConfigError, TreebuildError
from treebuild.core.run import RunContext, activity

EXIT_SUCCESS = 0


def build(
    packages: list[str] | None = typer.Argument(None, help="Packages to build (default: the whole layout)"),
    root: Path = typer.Option(Path("."), "--root", help="Workspace root directory"),
    rebuild: bool = typer.Option(False, "--rebuild", help="Clean the selected packages before building"),
    force: bool = typer.Option(False, "--force", help="Run every build step of the selected packages again"),
    keep_going: bool = typer.Option(False, "--keep-going", help="Continue with other packages after a failure"),
    no_report: bool = typer.Option(False, "--no-report", help="Do not write build_report.json"),
) -> None:
    """Build packages of a workspace.

    Exit codes:
      0 - Success
      1 - Configuration error
      2 - Unknown package
      3 - Unresolved dependency
      4 - Build failed
      5 - Build report could not be written
    """
    reporter = Reporter()
    with RunContext("build") as run:
        exit_code = EXIT_SUCCESS
        try:
            if rebuild and force:
                raise ConfigError(message="--rebuild and --force are mutually exclusive")
            exit_code = _run_build(run, packages, root, rebuild, force, keep_going, no_report, reporter)
        except TreebuildError as e:
            exit_code = e.exit_code
            run.log_event({"event": "build.failed", "error": str(e), "exit_code": exit_code})
            reporter.error(e)

        run.write_summary(exit_code=exit_code, rebuild=rebuild, force=force)

    sys.exit(exit_code)


def _run_build(
    run: RunContext,
    packages: list[str] | None,
    root: Path,
    rebuild: bool,
    force: bool,
    keep_going: bool,
    no_report: bool,
    reporter: Reporter,
) -> int:
    cfg = run.cfg
    defaults = cfg.get("defaults", {})

    activity("load", f"Loading workspace at {root}")
    manifest = open_workspace(root, cfg, run)
    request = InvalidationRequest.for_selection(manifest, selected_packages(manifest, packages))
    run.log_event(
        {"event": "build.selection", "selected": list(request.selected), "enabled": list(request.enabled)}
    )

    write_report = defaults.get("build_report", True) and not no_report
    settings = BuildSettings()
    driver = SequentialBuildDriver(
        manifest,
        settings,
        keep_going=keep_going or bool(defaults.get("keep_going")),
    )
    ops = BuildOps(manifest, driver=driver, settings=settings, report_dir=run.logs_path if write_report else None)

    if rebuild:
        activity("build", f"Rebuilding {', '.join(request.selected)}")
        operation = ops.rebuild
    elif force:
        activity("build", f"Force-building {', '.join(request.selected)}")
        operation = ops.force_build
    else:
        activity("build", f"Building {len(request.enabled)} packages")
        operation = ops.build

    try:
        operation(request)
    finally:
        if ops.report_path is not None and ops.report_path.exists():
            activity("report", f"Build report: {ops.report_path}")
            run.log_event({"event": "build.report", "path": str(ops.report_path)})

    excluded = [name for name in request.enabled if manifest.excluded(name)]
    for name in excluded:
        reporter.warn(f"{name} is excluded: {manifest.exclusions[name]}")
    reporter.success()
    run.log_event({"event": "build.complete", "packages": list(request.enabled)})
    return EXIT_SUCCESS
