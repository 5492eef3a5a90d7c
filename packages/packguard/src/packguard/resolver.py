"""Resolve a scoped identifier to the file and package that define it.

Resolution needs no symbol table. Under the path convention a fully-qualified
identifier `Apples::Green` can only be defined by
`<pkg>/<source root>/*/apples/green.<ext>` inside a package whose last name
segment is `apples`, so locating that file is enough. If such a file exists it
must define the identifier; if two exist the convention itself is broken.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from .convention import underscore
from .core.logging import log_event
from .errors import AmbiguousDefinitionError
from .index import to_repo_path
from .model import ConstantReference, Package

if TYPE_CHECKING:
    from .core.context import RunContext


class ConstantResolver:
    def __init__(self, ctx: RunContext) -> None:
        self.ctx = ctx

    def _candidate_files(self, package_dir: PurePosixPath, pattern: str) -> list[PurePosixPath]:
        base = self.ctx.repo_root / package_dir
        hits: list[PurePosixPath] = []
        for root in self.ctx.config.source_roots:
            for found in (base / root).glob(pattern):
                if found.is_file():
                    hits.append(PurePosixPath(found.relative_to(self.ctx.repo_root).as_posix()))
        return hits

    def resolve(self, identifier_name: str, referencing_path: str | PurePosixPath) -> ConstantReference | None:
        name = identifier_name.lstrip(":")
        segments = name.split("::")
        if not segments or not all(segments):
            return None
        root_namespace = segments[0]
        suffix = underscore(root_namespace)
        ext = self.ctx.config.extension
        if len(segments) == 1:
            pattern = f"*/{suffix}{ext}"
        else:
            pattern = "*/" + "/".join([suffix, *(underscore(segment) for segment in segments[1:])]) + ext

        matches: list[tuple[PurePosixPath, Package]] = []
        for package in self.ctx.index.with_last_name(suffix):
            for found in self._candidate_files(package.directory, pattern):
                matches.append((found, package))
        if not matches:
            return None
        if len(matches) > 1:
            candidates = tuple(sorted(str(path) for path, _ in matches))
            log_event(self.ctx, "error", "resolver", "ambiguous", identifier=name, candidates=",".join(candidates))
            raise AmbiguousDefinitionError(
                f"`{name}` is defined by more than one file under the path convention: {', '.join(candidates)}",
                identifier=name,
                candidates=candidates,
            )
        definition_path, package = matches[0]
        return ConstantReference(
            identifier_name=name,
            root_namespace=root_namespace,
            defining_package=package,
            definition_path=definition_path,
            referencing_path=to_repo_path(self.ctx.repo_root, referencing_path),
            index=self.ctx.index,
        )
