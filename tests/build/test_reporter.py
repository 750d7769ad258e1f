# This file is part of Treebuild, a meta-build tool for heterogeneous source workspaces.
#
# Copyright 2025 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-only

"""Tests for treebuild.build.reporter module."""

from __future__ import annotations

import io

from rich.console import Console

from treebuild.build.reporter import Reporter
from treebuild.core.exceptions import BuildFailure


def make_reporter(**kwargs: object) -> tuple[Reporter, io.StringIO]:
    out = io.StringIO()
    return Reporter(console=Console(file=out, no_color=True, width=200), **kwargs), out  # type: ignore[arg-type]


class TestReporter:
    def test_error_first_line_is_highlighted(self) -> None:
        reporter, out = make_reporter()

        reporter.error(BuildFailure(message="treebuild-build failed for b\nb: make exited with 2"))

        lines = out.getvalue().splitlines()
        assert lines[0] == "Build failed: treebuild-build failed for b"
        assert lines[1] == "b: make exited with 2"

    def test_success_with_post_message(self) -> None:
        reporter, out = make_reporter(post_success_message="source env.sh to use the workspace")

        reporter.success()

        assert "Build finished successfully at" in out.getvalue()
        assert "source env.sh to use the workspace" in out.getvalue()

    def test_warn_does_not_interpret_markup(self) -> None:
        reporter, out = make_reporter()

        reporter.warn("[bold]x[/bold] is excluded")

        assert out.getvalue().strip() == "WARN: [bold]x[/bold] is excluded"
