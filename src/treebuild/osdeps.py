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

"""OS dependency registry.

Maps workspace-level dependency names to the native packages that provide
them on the host operating system. Definitions are read from YAML files:

    boost:
      ubuntu,debian: libboost-all-dev
      fedora: boost-devel
    nokogiri: gem
    pkg-config: ignore
    cmake:
      ubuntu:
        "22.04": cmake
        default: cmake

A plain string value is either a package-manager keyword (handled by another
package manager), ``ignore`` (nothing to install), or the native package
name on every operating system.
"""

from __future__ import annotations

import logging
import platform
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from treebuild.core.exceptions import ConfigError, OSDependencyError

logger = logging.getLogger(__name__)

# Keywords that route a dependency to a non-native package manager
OTHER_PACKAGE_MANAGERS = frozenset({"gem", "pip"})

IGNORE_KEYWORD = "ignore"

_FLOAT_TAG = "tag:yaml.org,2002:float"
_INT_TAG = "tag:yaml.org,2002:int"


@dataclass(frozen=True)
class OperatingSystem:
    """Host operating system identification.

    Attributes:
        names: Distribution identifiers, most specific first (e.g.
            ["ubuntu", "debian"]).
        versions: Version identifiers (e.g. ["24.04", "noble"]).
    """

    names: tuple[str, ...] = ()
    versions: tuple[str, ...] = ()

    def __str__(self) -> str:
        name = self.names[0] if self.names else "unknown"
        return f"{name} {self.versions[0]}" if self.versions else name


def detect_operating_system(override: str | None = None) -> OperatingSystem:
    """Return the host operating system.

    Args:
        override: Optional "name[,name...] [version[,version...]]" string
            taken from configuration, bypassing detection.
    """
    if override:
        parts = override.split()
        names = tuple(n.strip().lower() for n in parts[0].split(",") if n.strip())
        versions = tuple(v.strip().lower() for v in parts[1].split(",")) if len(parts) > 1 else ()
        return OperatingSystem(names, versions)

    try:
        release = platform.freedesktop_os_release()
    except OSError:
        logger.debug("No os-release file found, operating system is unknown")
        return OperatingSystem()

    names = [release.get("ID", "")]
    names.extend(release.get("ID_LIKE", "").split())
    versions = [release.get("VERSION_ID", ""), release.get("VERSION_CODENAME", "")]
    return OperatingSystem(
        tuple(n.lower() for n in names if n),
        tuple(v.lower() for v in versions if v),
    )


class _OSDepsLoader(yaml.SafeLoader):
    """SafeLoader that reads numeric scalars as strings.

    Version keys such as 24.10 would otherwise become the float 24.1.
    """


_OSDepsLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in (_FLOAT_TAG, _INT_TAG)]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _split_keys(key: Any) -> list[str]:
    return [k.strip().lower() for k in str(key).split(",") if k.strip()]


@dataclass
class OSDependencies:
    """Registry of OS dependency definitions."""

    definitions: dict[str, Any] = field(default_factory=dict)
    operating_system: OperatingSystem = field(default_factory=OperatingSystem)
    sources: dict[str, str] = field(default_factory=dict)

    @classmethod
    def load(cls, paths: Iterable[Path], operating_system: OperatingSystem | None = None) -> OSDependencies:
        """Create a registry from a list of osdeps YAML files.

        Later files override the definitions of earlier ones.
        """
        registry = cls(operating_system=operating_system or detect_operating_system())
        for path in paths:
            registry.merge_file(path)
        return registry

    def merge_file(self, path: Path) -> None:
        try:
            data = yaml.load(path.read_text(), Loader=_OSDepsLoader) or {}
        except yaml.MarkedYAMLError as e:
            line = e.problem_mark.line + 1 if e.problem_mark else None
            raise ConfigError(message=f"invalid osdeps file: {e.problem}", path=str(path), line=line) from e
        except OSError as e:
            raise ConfigError(message=f"cannot read osdeps file: {e}", path=str(path)) from e

        if not isinstance(data, Mapping):
            raise ConfigError(message="osdeps file must contain a mapping", path=str(path))
        self.merge(data, source=str(path))

    def merge(self, data: Mapping[str, Any], source: str = "<inline>") -> None:
        for name, definition in data.items():
            if name in self.definitions and self.definitions[name] != definition:
                logger.debug(f"osdeps definition of {name} from {self.sources[name]} overridden by {source}")
            self.definitions[str(name)] = definition
            self.sources[str(name)] = source

    def has(self, name: str) -> bool:
        """Return True if there is a definition for this name."""
        return name in self.definitions

    def partition_packages(self, names: Iterable[str]) -> tuple[set[str], set[str]]:
        """Split names into native OS dependencies and other-manager ones.

        Names without any definition are returned in the OS set so that
        resolve_os_dependencies() reports them.
        """
        os_names: set[str] = set()
        other_names: set[str] = set()
        for name in names:
            definition = self.definitions.get(name)
            if isinstance(definition, str) and definition.lower() in OTHER_PACKAGE_MANAGERS:
                other_names.add(name)
            else:
                os_names.add(name)
        return os_names, other_names

    def _resolve_one(self, name: str) -> list[str]:
        if name not in self.definitions:
            raise OSDependencyError(message=f"there is no osdeps definition for {name}", names=[name])

        definition = self.definitions[name]
        if isinstance(definition, str):
            if definition.lower() == IGNORE_KEYWORD or definition.lower() in OTHER_PACKAGE_MANAGERS:
                return []
            return [definition]
        if isinstance(definition, list):
            return [str(d) for d in definition]
        if not isinstance(definition, Mapping):
            raise OSDependencyError(message=f"invalid osdeps definition for {name}", names=[name])

        os_def = None
        for key, value in definition.items():
            if set(_split_keys(key)) & set(self.operating_system.names):
                os_def = value
                break
        if os_def is None:
            raise OSDependencyError(
                message=(
                    f"there is an osdeps definition for {name}, "
                    f"but not for this operating system ({self.operating_system})"
                ),
                names=[name],
            )

        if isinstance(os_def, Mapping):
            version_def = None
            for key, value in os_def.items():
                if set(_split_keys(key)) & set(self.operating_system.versions):
                    version_def = value
                    break
            if version_def is None:
                version_def = os_def.get("default")
            if version_def is None:
                version = self.operating_system.versions[0] if self.operating_system.versions else "unknown"
                raise OSDependencyError(
                    message=(
                        f"there is an osdeps definition for {name} on {self.operating_system.names[0]}, "
                        f"but not for version {version}"
                    ),
                    names=[name],
                )
            os_def = version_def

        if isinstance(os_def, str):
            return [] if os_def.lower() == IGNORE_KEYWORD else [os_def]
        return [str(d) for d in os_def]

    def resolve_os_dependencies(self, names: Iterable[str]) -> list[str]:
        """Return the native package names providing the given dependencies.

        Raises:
            OSDependencyError: If a name cannot be satisfied on this system.
                The message is meant to be shown to the user as-is.
        """
        resolved: list[str] = []
        for name in sorted(names):
            for native in self._resolve_one(name):
                if native not in resolved:
                    resolved.append(native)
        return resolved
