"""Read `package.yml` manifests into `Package` records."""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
from typing import Any

import yaml

from .schema import validate
from .core.config import PackguardConfig
from .errors import ManifestError, PackguardError
from .model import ROOT_PACKAGE_NAME, Package


def iter_manifest_paths(repo_root: Path, config: PackguardConfig) -> list[Path]:
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(repo_root):
        dirnames[:] = sorted(d for d in dirnames if d not in config.exclude_dirs)
        if config.manifest_file in filenames:
            found.append(Path(dirpath) / config.manifest_file)
    return sorted(found)


def _enforces(value: Any) -> bool:
    return value is True or value == "strict"


def load_manifest(repo_root: Path, manifest: Path, config: PackguardConfig) -> Package:
    rel_dir = PurePosixPath(manifest.parent.relative_to(repo_root).as_posix())
    name = ROOT_PACKAGE_NAME if str(rel_dir) == "." else str(rel_dir)
    try:
        raw = yaml.safe_load(manifest.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ManifestError(f"{rel_dir / manifest.name}: invalid YAML: {exc}") from exc
    try:
        validate("package-manifest", raw, source=str(rel_dir / manifest.name))
    except PackguardError as exc:
        raise ManifestError(exc.message) from exc
    public_path = raw.get("public_path") or config.public_dir
    return Package(
        name=name,
        directory=rel_dir,
        dependencies=frozenset(str(dep).rstrip("/") for dep in raw.get("dependencies", [])),
        enforces_dependencies=_enforces(raw.get("enforce_dependencies", True)),
        enforces_privacy=_enforces(raw.get("enforce_privacy", False)),
        metadata=dict(raw.get("metadata") or {}),
        public_path=rel_dir / PurePosixPath(public_path.strip("/")),
    )


def load_packages(repo_root: Path, config: PackguardConfig) -> list[Package]:
    packages: list[Package] = []
    seen: dict[str, Path] = {}
    for manifest in iter_manifest_paths(repo_root, config):
        package = load_manifest(repo_root, manifest, config)
        if package.name in seen:
            raise ManifestError(f"duplicate package name `{package.name}`: {seen[package.name]} and {manifest}")
        seen[package.name] = manifest
        packages.append(package)
    return packages
