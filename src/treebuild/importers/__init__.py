# This file is part of Treebuild, a meta-build tool for heterogeneous source workspaces.
#
# Copyright 2025 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-only

"""Source importers, selected by the kind declared for a package."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from treebuild.core.exceptions import ConfigError
from treebuild.importers.archive import ArchiveImporter
from treebuild.importers.base import Importer, Snapshottable
from treebuild.importers.git import GitImporter

# Importer kinds, as written in package definitions
ARCHIVE_KINDS = frozenset({"archive", "tar", "zip"})


def create_importer(spec: Mapping[str, Any], archive_cache: Path) -> Importer:
    """Create an importer from its declaration.

    Args:
        spec: Importer declaration with a "type" key plus its options.
        archive_cache: Cache directory for downloaded archives.

    Raises:
        ConfigError: If the type is unknown or a required option is missing.
    """
    kind = str(spec.get("type", "")).lower()
    url = spec.get("url")
    if not url:
        raise ConfigError(message=f"{kind or 'importer'} importer requires a url")

    if kind == "git":
        return GitImporter(
            url=str(url),
            branch=str(spec.get("branch", "master")),
            tag=spec.get("tag"),
            commit=spec.get("commit"),
        )
    if kind in ARCHIVE_KINDS:
        return ArchiveImporter(url=str(url), cache_dir=archive_cache, filename=spec.get("filename"))

    raise ConfigError(message=f"unknown importer type {kind!r}")


__all__ = [
    "ArchiveImporter",
    "GitImporter",
    "Importer",
    "Snapshottable",
    "create_importer",
]
