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

"""Build module for Treebuild.

Provides the build orchestration operations (build, rebuild, force-build),
the default sequential build driver and the build report.
"""

# Orchestration
from treebuild.build.orchestrator import (
    BUILD_OPERATION,
    BuildOps,
    InvalidationRequest,
)

# Driver
from treebuild.build.driver import (
    BuildDriver,
    BuildSettings,
    SequentialBuildDriver,
)

# Report
from treebuild.build.report import (
    REPORT_BASENAME,
    generate_build_report,
    package_entry,
    report_path,
)

__all__ = [
    # Orchestration
    "BUILD_OPERATION",
    "BuildOps",
    "InvalidationRequest",
    # Driver
    "BuildDriver",
    "BuildSettings",
    "SequentialBuildDriver",
    # Report
    "REPORT_BASENAME",
    "generate_build_report",
    "package_entry",
    "report_path",
]
