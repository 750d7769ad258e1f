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

"""Archive importer: tarballs and zip files downloaded over HTTP.

Downloaded archives are kept in a cache directory so that a later snapshot
can ship the exact file that was extracted.
"""

from __future__ import annotations

import logging
import shutil
import tarfile
import tempfile
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import requests

from treebuild.core.exceptions import ImportFailure, SnapshotError
from treebuild.importers.base import Importer
from treebuild.workspace.environment import SOURCE_DIR_VAR

if TYPE_CHECKING:
    from treebuild.workspace.package import Package

logger = logging.getLogger(__name__)

# Subdirectory of a snapshot target receiving the archive files
ARCHIVES_DIR = "archives"

DOWNLOAD_TIMEOUT = 60


class ArchiveImporter(Importer):
    """Downloads an archive into a cache and extracts it as the sources.

    Attributes:
        url: Archive URL. file:// URLs and plain paths are copied.
        cache_dir: Directory where downloaded archives are kept.
        filename: Name of the cached file (defaults to the URL basename).
    """

    kind = "archive"

    def __init__(
        self,
        url: str,
        cache_dir: Path,
        filename: str | None = None,
        session: requests.Session | None = None,
        timeout: int = DOWNLOAD_TIMEOUT,
    ) -> None:
        self.url = url
        self.cache_dir = cache_dir
        self.filename = filename or Path(urlparse(url).path).name
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def cachefile(self) -> Path:
        return self.cache_dir / self.filename

    def download(self, package: Package) -> Path:
        """Fetch the archive into the cache unless it is already there."""
        if self.cachefile.exists():
            logger.debug(f"{package.name}: using cached {self.cachefile}")
            return self.cachefile

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        parsed = urlparse(self.url)
        if parsed.scheme in ("", "file"):
            try:
                shutil.copy(parsed.path, self.cachefile)
            except OSError as e:
                raise ImportFailure(
                    message=f"{package.name}: cannot copy {parsed.path}: {e.strerror or e}",
                    package=package.name,
                ) from e
            return self.cachefile

        partial = self.cachefile.with_name(self.cachefile.name + ".part")
        try:
            resp = self.session.get(self.url, timeout=self.timeout, stream=True)
            if resp.status_code != 200:
                raise ImportFailure(
                    message=f"{package.name}: cannot download {self.url}: HTTP {resp.status_code}",
                    package=package.name,
                )
            with partial.open("wb") as f:
                for chunk in resp.iter_content(chunk_size=65536):
                    f.write(chunk)
            partial.replace(self.cachefile)
        except requests.RequestException as e:
            raise ImportFailure(
                message=f"{package.name}: cannot download {self.url}: {e}",
                package=package.name,
            ) from e
        finally:
            partial.unlink(missing_ok=True)
        return self.cachefile

    def import_package(self, package: Package) -> None:
        archive = self.download(package)
        package.srcdir.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(dir=package.srcdir.parent) as tmpdir:
            tmp = Path(tmpdir)
            try:
                extract_archive(archive, tmp, exclude=package.excluded)
            except (tarfile.TarError, zipfile.BadZipFile) as e:
                raise ImportFailure(
                    message=f"{package.name}: cannot extract {archive}: {e}",
                    package=package.name,
                ) from e
            entries = list(tmp.iterdir())
            # Archives usually hold a single <name>-<version>/ directory
            root = entries[0] if len(entries) == 1 and entries[0].is_dir() else tmp
            if root is tmp:
                package.srcdir.mkdir(parents=True, exist_ok=True)
                for entry in entries:
                    shutil.move(str(entry), package.srcdir / entry.name)
            else:
                shutil.move(str(root), package.srcdir)

    def snapshot(self, package: Package, target_dir: Path) -> dict[str, str]:
        """Copy the cached archive under target_dir/archives.

        The returned URL is relative to the source directory variable so
        that the descriptor stays valid wherever the snapshot is moved.
        """
        if not self.cachefile.exists():
            raise SnapshotError(
                message=f"{package.name}: archive {self.cachefile} has not been downloaded",
                package=package.name,
            )
        archive_dir = target_dir / ARCHIVES_DIR
        archive_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy(self.cachefile, archive_dir)
        return {"url": f"${SOURCE_DIR_VAR}/{ARCHIVES_DIR}/{self.cachefile.name}"}


def extract_archive(archive: Path, dest: Path, exclude: Callable[[str], bool] | None = None) -> None:
    """Extract a tar or zip archive into dest, refusing unsafe members.

    Members whose name matches exclude are left out.
    """
    skip = exclude or (lambda name: False)
    if zipfile.is_zipfile(archive):
        with zipfile.ZipFile(archive) as zf:
            names = zf.namelist()
            for name in names:
                if name.startswith("/") or ".." in Path(name).parts:
                    raise zipfile.BadZipFile(f"unsafe member {name}")
            zf.extractall(dest, members=[name for name in names if not skip(name)])
        return

    def member_filter(member: tarfile.TarInfo, path: str) -> tarfile.TarInfo | None:
        if skip(member.name):
            return None
        return tarfile.data_filter(member, path)

    with tarfile.open(archive, "r:*") as tar:
        tar.extractall(path=dest, filter=member_filter)
