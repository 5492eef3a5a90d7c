from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from .index import PackageIndex

ROOT_PACKAGE_NAME = "."


class Severity(str, Enum):
    ERROR = "error"


@dataclass(frozen=True)
class Package:
    name: str
    directory: PurePosixPath
    dependencies: frozenset[str] = frozenset()
    enforces_dependencies: bool = True
    enforces_privacy: bool = False
    metadata: Mapping[str, Any] = field(default_factory=dict)
    public_path: PurePosixPath | None = None

    @property
    def is_root(self) -> bool:
        return self.name == ROOT_PACKAGE_NAME

    @property
    def last_name(self) -> str:
        return self.name.rsplit("/", 1)[-1]

    @property
    def automatic_namespace(self) -> bool:
        return bool(self.metadata.get("automatic_pack_namespace"))

    def contains(self, path: PurePosixPath) -> bool:
        if self.is_root:
            return True
        return path == self.directory or self.directory in path.parents


@dataclass(frozen=True)
class ConstantReference:
    identifier_name: str
    root_namespace: str
    defining_package: Package
    definition_path: PurePosixPath
    referencing_path: PurePosixPath
    index: PackageIndex = field(repr=False, compare=False)

    @cached_property
    def referencing_package(self) -> Package | None:
        return self.index.owner_of(self.referencing_path)

    @property
    def is_public(self) -> bool:
        public = self.defining_package.public_path
        if public is None:
            return False
        return public in self.definition_path.parents

    @property
    def is_same_package(self) -> bool:
        ref = self.referencing_package
        return ref is not None and ref.name == self.defining_package.name


@dataclass(frozen=True)
class NamespaceContext:
    actual_namespace: str
    actual_fully_qualified_name: str
    expected_namespace: str
    expected_file_path: PurePosixPath


@dataclass(frozen=True)
class Offense:
    rule_id: str
    path: str
    message: str
    line: int = 1
    column: int = 0
    severity: Severity = Severity.ERROR

    @property
    def canonical_key(self) -> tuple[str, int, int, str, str]:
        return (self.path, self.line, self.column, self.rule_id, self.message)
