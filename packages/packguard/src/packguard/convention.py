"""Path convention: directories below a source root establish namespaces.

Examples, for a package `packs/apples` with source root `app`:

- `packs/apples/app/services/apples.rb` establishes `Apples`
- `packs/apples/app/services/apples/tool.rb` establishes `Apples::Tool`
- `packs/apples/app/models/concerns/apples/ripe.rb` establishes `Apples::Ripe`
  (`models/concerns` is a shared-concern directory and takes one slot)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import PurePosixPath
from typing import Mapping

from .core.config import PackguardConfig
from .model import Package

_UNDERSCORE_ACRONYM = re.compile(r"([A-Z\d]+)([A-Z][a-z])")
_UNDERSCORE_WORD = re.compile(r"([a-z\d])([A-Z])")


def camelize(segment: str, acronyms: Mapping[str, str] | None = None) -> str:
    acronyms = acronyms or {}
    return "".join(acronyms.get(part, part.capitalize()) for part in segment.split("_"))


def underscore(name: str) -> str:
    word = _UNDERSCORE_ACRONYM.sub(r"\1_\2", name)
    word = _UNDERSCORE_WORD.sub(r"\1_\2", word)
    return word.replace("-", "_").lower()


def relative_to_package(path: PurePosixPath, package: Package) -> PurePosixPath | None:
    if package.is_root:
        return path
    if not package.contains(path):
        return None
    return path.relative_to(package.directory)


@dataclass(frozen=True)
class SourceLocation:
    package: Package
    source_root: str
    autoload_dir: str
    segments: tuple[str, ...]
    # directory and file names as written, extension dropped
    names: tuple[str, ...]

    @property
    def fully_qualified_name(self) -> str:
        return "::".join(self.segments)


class PathConvention:
    def __init__(self, config: PackguardConfig) -> None:
        self.config = config
        self._acronyms = config.acronym_map

    def camelize(self, segment: str) -> str:
        return camelize(segment, self._acronyms)

    def package_namespace(self, package: Package) -> str:
        return self.camelize(package.last_name)

    def locate(self, path: PurePosixPath, package: Package) -> SourceLocation | None:
        """Split `path` into source root, autoload directory and namespace segments.

        Returns None when the path is not a source file below one of the
        package's source roots; callers treat that as "no opinion".
        """
        rel = relative_to_package(path, package)
        if rel is None or not rel.name.endswith(self.config.extension):
            return None
        parts = rel.parts
        if len(parts) < 3 or parts[0] not in self.config.source_roots:
            return None
        root, rest = parts[0], parts[1:]
        if len(rest) >= 3 and any(fnmatch(f"{rest[0]}/{rest[1]}", pattern) for pattern in self.config.shared_concern_dirs):
            autoload_dir, remaining = f"{rest[0]}/{rest[1]}", rest[2:]
        else:
            autoload_dir, remaining = rest[0], rest[1:]
        if not remaining:
            return None
        leaf = remaining[-1][: -len(self.config.extension)]
        names = [*remaining[:-1], leaf]
        return SourceLocation(
            package=package,
            source_root=root,
            autoload_dir=autoload_dir,
            segments=tuple(self.camelize(name) for name in names),
            names=tuple(names),
        )

    def expected_namespace_segments(self, path: PurePosixPath, package: Package) -> tuple[str, ...] | None:
        location = self.locate(path, package)
        return None if location is None else location.segments

    def expected_path(self, location: SourceLocation) -> PurePosixPath:
        """The file that should hold `location`'s definitions inside its package.

        The path always sits below a directory named after the package, so a
        location whose first segment is not the package namespace gets that
        directory prepended. File and directory names are kept as written.
        """
        package = location.package
        names = list(location.names)
        if location.segments[0] != self.package_namespace(package):
            names.insert(0, package.last_name)
        names[-1] = names[-1] + self.config.extension
        return package.directory.joinpath(location.source_root, location.autoload_dir, *names)
