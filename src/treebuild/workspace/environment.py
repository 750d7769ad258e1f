# This file is part of Treebuild, a meta-build tool for heterogeneous source workspaces.
#
# Copyright 2025 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-only

"""Build environment shared by all commands run during a build pass."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

# Relocatable root of the workspace sources, exported to every command
SOURCE_DIR_VAR = "TREEBUILD_SOURCE_DIR"

LIBRARY_PATH_VAR = "LD_LIBRARY_PATH"


@dataclass
class Environment:
    """Variables set or extended on top of the process environment.

    Path-like variables are kept as ordered lists of entries and joined with
    os.pathsep when the environment is materialized.
    """

    values: dict[str, str] = field(default_factory=dict)
    paths: dict[str, list[str]] = field(default_factory=dict)

    def set(self, name: str, value: str) -> None:
        self.values[name] = value

    def add_path(self, name: str, path: Path | str) -> None:
        """Prepend a directory to a path-like variable, once."""
        entries = self.paths.setdefault(name, [])
        entry = str(path)
        if entry not in entries:
            entries.insert(0, entry)

    def as_dict(self, base: Mapping[str, str] | None = None) -> dict[str, str]:
        """Return the full environment for a subprocess."""
        env = dict(os.environ if base is None else base)
        env.update(self.values)
        for name, entries in self.paths.items():
            existing = [p for p in env.get(name, "").split(os.pathsep) if p]
            env[name] = os.pathsep.join(entries + [p for p in existing if p not in entries])
        return env
