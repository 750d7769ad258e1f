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

"""Loading of the workspace manifest and package definition files.

The workspace is described by ``<root>/treebuild/manifest.yml``:

    definitions:
      - packages.yml
      - source: rock
        path: remotes/rock/packages.yml
    osdeps: [osdeps.yml]
    layout: [base/types, tools/logger]
    ignore_packages: ["external/.*"]
    exclude_packages:
      drivers/camera: needs a vendor SDK
    source_packages: [boost]
    install_dir: install

Each definition file lists packages:

    packages:
      - name: base/types
        type: cmake
        depends: [boost, base/logging]
        defines: {CMAKE_BUILD_TYPE: Release}
        exclude: ['[.]pyc$']
        importer:
          type: git
          url: https://github.com/example/base-types.git
          branch: master

Errors are reported with the file and line of the offending entry. Line
numbers come from the YAML nodes themselves.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from treebuild.build.systems import BUILD_TOOL_DEPENDENCIES, create_build_system
from treebuild.core.context import LoadContext
from treebuild.core.exceptions import ConfigError
from treebuild.importers import create_importer
from treebuild.osdeps import OSDependencies, detect_operating_system
from treebuild.workspace.dependencies import depends_on
from treebuild.workspace.manifest import Manifest
from treebuild.workspace.package import Package

logger = logging.getLogger(__name__)

MANIFEST_DIR = "treebuild"
MANIFEST_FILE = "manifest.yml"

# Key injected in every mapping read by _LineLoader
LINE_KEY = "__line__"

# Package entry keys copied verbatim into Package.options
OPTION_KEYS = ("defines", "configure_flags", "rake_setup_task", "orogen_file", "builddir")


class _LineLoader(yaml.SafeLoader):
    """Safe loader recording the 1-based line of every mapping."""

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        mapping = super().construct_mapping(node, deep=deep)
        mapping[LINE_KEY] = node.start_mark.line + 1
        return mapping


def _strip_lines(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _strip_lines(v) for k, v in value.items() if k != LINE_KEY}
    if isinstance(value, list):
        return [_strip_lines(v) for v in value]
    return value


def load_yaml(context: LoadContext, verbose: bool = False) -> Any:
    """Read a YAML file, turning syntax errors into located ConfigErrors."""
    try:
        text = context.path.read_text()
    except OSError as e:
        raise context.error(f"cannot read file: {e.strerror}") from e
    try:
        return yaml.load(text, Loader=_LineLoader)
    except yaml.MarkedYAMLError as e:
        if verbose:
            raise
        line = e.problem_mark.line + 1 if e.problem_mark else None
        raise context.at(line).error(f"invalid YAML: {e.problem}") from e


class DefinitionLoader:
    """Loads package definition files into a manifest.

    Dependencies are only classified once every file has been read, since
    a package may depend on one declared later.
    """

    def __init__(
        self,
        manifest: Manifest,
        archive_cache: Path,
        log_dir: Path | None = None,
        verbose: bool = False,
    ) -> None:
        self.manifest = manifest
        self.archive_cache = archive_cache
        self.log_dir = log_dir
        self.verbose = verbose
        self.loaded_files: set[Path] = set()
        self._pending: list[tuple[Package, list[str], LoadContext]] = []

    def import_file(self, path: Path, source_name: str = "local", local: bool = True) -> list[Package]:
        """Load one definition file, once.

        Returns:
            The packages the file defined (empty if it was already loaded).
        """
        path = path.resolve()
        if path in self.loaded_files:
            return []

        context = LoadContext(source_name=source_name, path=path, local=local)
        data = load_yaml(context, verbose=self.verbose) or {}
        if not isinstance(data, Mapping):
            raise context.at(1).error("definition file must contain a mapping")

        entries = data.get("packages", [])
        if not isinstance(entries, list):
            raise context.at(data.get(LINE_KEY)).error("'packages' must be a list")

        defined: list[Package] = []
        for entry in entries:
            if not isinstance(entry, Mapping):
                raise context.error("package entries must be mappings")
            package = self.define(entry, context.at(entry.get(LINE_KEY)))
            if package is not None:
                defined.append(package)

        self.loaded_files.add(path)
        return defined

    def define(self, entry: Mapping[str, Any], context: LoadContext) -> Package | None:
        """Define one package from its entry.

        Returns:
            The new package, or None if a package of that name already
            exists (the first definition wins).
        """
        name = entry.get("name")
        if not name or not isinstance(name, str):
            raise context.error("package entry has no name")

        if self.manifest.has_package(name):
            logger.warning(
                f"{name} from {context.describe()} is overridden by the definition in "
                f"{self.manifest.definition_source(name)}"
            )
            return None

        kind = str(entry.get("type", "import"))
        if self.manifest.ignored(name):
            kind = "dummy"

        try:
            build_system = create_build_system(kind, log_dir=self.log_dir)
            importer_spec = entry.get("importer")
            importer = create_importer(_strip_lines(importer_spec), self.archive_cache) if importer_spec else None
        except ConfigError as e:
            raise context.error(e.message) from e

        exclude = self._exclude_patterns(entry, build_system.default_exclude, context)
        srcdir = self.manifest.root_dir / str(entry.get("srcdir", name))
        options = {key: _strip_lines(entry[key]) for key in OPTION_KEYS if key in entry}
        package = Package(
            name=name,
            srcdir=srcdir,
            kind=kind,
            importer=importer,
            build_system=build_system,
            options=options,
            exclude=exclude,
        )
        self.manifest.register_package(package, context)

        tool = BUILD_TOOL_DEPENDENCIES.get(kind)
        if tool:
            self.manifest.add_build_system_dependency(tool)

        depends = entry.get("depends", [])
        if isinstance(depends, str):
            depends = [depends]
        if not isinstance(depends, list):
            raise context.error("'depends' must be a list of names")
        self._pending.append((package, [str(d) for d in depends], context))
        return package

    @staticmethod
    def _exclude_patterns(
        entry: Mapping[str, Any], defaults: tuple[str, ...], context: LoadContext
    ) -> list[re.Pattern[str]]:
        extra = _strip_lines(entry.get("exclude", []))
        if isinstance(extra, str):
            extra = [extra]
        if not isinstance(extra, list):
            raise context.error("'exclude' must be a list of regular expressions")
        patterns = []
        for source in [*defaults, *(str(p) for p in extra)]:
            try:
                patterns.append(re.compile(source))
            except re.error as e:
                raise context.error(f"invalid exclude pattern {source!r}: {e}") from e
        return patterns

    def resolve_dependencies(self) -> None:
        """Classify the dependencies of every package loaded so far."""
        pending, self._pending = self._pending, []
        for package, names, context in pending:
            if package.kind == "dummy":
                continue
            for name in names:
                depends_on(self.manifest, package, name, context=context)


def load_workspace(
    root_dir: Path,
    archive_cache: Path,
    operating_system: str | None = None,
    log_dir: Path | None = None,
    verbose: bool = False,
) -> Manifest:
    """Load the manifest and every package definition of a workspace.

    Raises:
        ConfigError: On missing or invalid files, with file and line.
        UnresolvedDependencyError: If a dependency resolves nowhere.
    """
    root_dir = root_dir.resolve()
    config_dir = root_dir / MANIFEST_DIR
    context = LoadContext(source_name="local", path=config_dir / MANIFEST_FILE)
    if not context.path.exists():
        raise context.error("workspace manifest not found")

    data = load_yaml(context, verbose=verbose) or {}
    if not isinstance(data, Mapping):
        raise context.at(1).error("manifest must contain a mapping")
    data = _strip_lines(data)

    osdeps = OSDependencies.load(
        [config_dir / p for p in data.get("osdeps", [])],
        operating_system=detect_operating_system(operating_system),
    )
    install_dir = data.get("install_dir")
    manifest = Manifest(
        root_dir=root_dir,
        osdeps=osdeps,
        install_dir=root_dir / install_dir if install_dir else None,
        layout=[str(n) for n in data.get("layout", [])],
        explicit_selection={str(n) for n in data.get("source_packages", [])},
        ignore_patterns=[str(p) for p in data.get("ignore_packages", [])],
    )

    exclusions = data.get("exclude_packages") or {}
    if not isinstance(exclusions, Mapping):
        raise context.error("'exclude_packages' must map package names to reasons")
    for name, reason in exclusions.items():
        manifest.add_exclusion(str(name), str(reason))

    loader = DefinitionLoader(manifest, archive_cache, log_dir=log_dir, verbose=verbose)
    for item in data.get("definitions", []):
        if isinstance(item, Mapping):
            loader.import_file(
                config_dir / str(item["path"]),
                source_name=str(item.get("source", "local")),
                local=bool(item.get("local", "source" not in item)),
            )
        else:
            loader.import_file(config_dir / str(item))
    loader.resolve_dependencies()
    return manifest
