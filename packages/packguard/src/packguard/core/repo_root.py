"""Repository root detection helpers.

`Path.cwd()` is only allowed in this module.
"""

from __future__ import annotations

from pathlib import Path

from .config import has_packguard_table


def _is_repo_root(cur: Path) -> bool:
    return has_packguard_table(cur / "pyproject.toml") or (cur / ".git").exists()


def find_repo_root(start: Path | None = None) -> Path:
    """Walk up to the nearest `[tool.packguard]` table or `.git` directory.

    Without either marker the outermost directory holding a `package.yml` wins,
    so that starting inside a pack never selects the pack itself.
    """
    cur = (start or Path.cwd()).resolve()
    if cur.is_file():
        cur = cur.parent
    outermost_manifest: Path | None = None
    while True:
        if _is_repo_root(cur):
            return cur
        if (cur / "package.yml").is_file():
            outermost_manifest = cur
        if cur.parent == cur:
            break
        cur = cur.parent
    if outermost_manifest is None:
        raise RuntimeError("unable to resolve repository root")
    return outermost_manifest
