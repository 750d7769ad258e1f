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

"""Git importer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import git

from treebuild.core.exceptions import ImportFailure, SnapshotError
from treebuild.importers.base import Importer

if TYPE_CHECKING:
    from treebuild.workspace.package import Package

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "master"


class GitImporter(Importer):
    """Clones a git repository at a branch, tag or commit.

    Attributes:
        url: Repository URL.
        branch: Branch to check out.
        tag: Tag to check out instead of the branch head.
        commit: Commit to check out, takes precedence over tag and branch.
    """

    kind = "git"

    def __init__(
        self,
        url: str,
        branch: str = DEFAULT_BRANCH,
        tag: str | None = None,
        commit: str | None = None,
    ) -> None:
        self.url = url
        self.branch = branch
        self.tag = tag
        self.commit = commit

    @property
    def ref(self) -> str:
        """The ref this importer checks out."""
        return self.commit or self.tag or self.branch

    def import_package(self, package: Package) -> None:
        srcdir = package.srcdir
        logger.debug(f"{package.name}: cloning {self.url} ({self.branch}) into {srcdir}")
        try:
            srcdir.parent.mkdir(parents=True, exist_ok=True)
            repo = git.Repo.clone_from(self.url, srcdir, branch=self.branch)
            if self.commit or self.tag:
                repo.git.checkout(self.ref)
        except git.GitCommandError as e:
            raise ImportFailure(
                message=f"{package.name}: cannot import {self.url}: {e.stderr.strip() or e}",
                package=package.name,
            ) from e

    def snapshot(self, package: Package, target_dir: Path) -> dict[str, str]:
        """Return the revision the importer's ref points to on disk.

        The ref is resolved in the local repository, so the result is what
        is checked out now, whatever happened upstream since.
        """
        try:
            repo = git.Repo(package.srcdir)
            revision = repo.commit(self.ref).hexsha
        except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
            raise SnapshotError(
                message=f"{package.name}: {package.srcdir} is not a git repository",
                package=package.name,
            ) from e
        except (git.exc.BadName, ValueError, git.GitCommandError) as e:
            raise SnapshotError(
                message=f"{package.name}: cannot resolve {self.ref} in {package.srcdir}",
                package=package.name,
            ) from e
        return {"revision": revision}
