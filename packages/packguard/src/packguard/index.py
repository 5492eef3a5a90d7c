from __future__ import annotations

from pathlib import Path, PurePosixPath

from .core.config import PackguardConfig
from .manifest import load_packages
from .model import ROOT_PACKAGE_NAME, Package


def to_repo_path(repo_root: Path, path: str | Path | PurePosixPath) -> PurePosixPath:
    """Normalize an absolute or repo-relative path into a repo-relative posix path."""
    raw = Path(path)
    if raw.is_absolute():
        raw = raw.resolve().relative_to(repo_root.resolve())
    return PurePosixPath(raw.as_posix())


class PackageIndex:
    """Lazily loaded packages of one repository, by name and by owned path."""

    def __init__(self, repo_root: Path, config: PackguardConfig) -> None:
        self.repo_root = repo_root
        self.config = config
        self._packages: tuple[Package, ...] | None = None
        self._by_name: dict[str, Package] = {}
        self._owner_cache: dict[PurePosixPath, Package | None] = {}

    def _load(self) -> tuple[Package, ...]:
        if self._packages is None:
            packages = load_packages(self.repo_root, self.config)
            self._packages = tuple(packages)
            self._by_name = {package.name: package for package in packages}
        return self._packages

    def bust_cache(self) -> None:
        self._packages = None
        self._by_name = {}
        self._owner_cache = {}

    def all(self) -> tuple[Package, ...]:
        return self._load()

    def find(self, name: str) -> Package | None:
        self._load()
        return self._by_name.get(name.rstrip("/"))

    @property
    def root_package(self) -> Package | None:
        return self.find(ROOT_PACKAGE_NAME)

    def non_root(self) -> tuple[Package, ...]:
        return tuple(package for package in self._load() if not package.is_root)

    def with_last_name(self, last_name: str) -> tuple[Package, ...]:
        return tuple(
            package
            for package in self.non_root()
            if package.name == last_name or package.name.endswith(f"/{last_name}")
        )

    def owner_of(self, path: str | Path | PurePosixPath) -> Package | None:
        rel = to_repo_path(self.repo_root, path)
        if rel not in self._owner_cache:
            candidates = [package for package in self.non_root() if package.contains(rel)]
            if candidates:
                owner: Package | None = max(candidates, key=lambda package: len(package.directory.parts))
            else:
                owner = self.root_package
            self._owner_cache[rel] = owner
        return self._owner_cache[rel]
