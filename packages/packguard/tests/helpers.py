from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Any

import yaml

from packguard.core.config import load_config
from packguard.core.context import RunContext

ROOT = Path(__file__).resolve().parents[3]


def write_file(repo: Path, rel: str, text: str = "") -> Path:
    path = repo / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def write_package_yml(repo: Path, name: str, **fields: Any) -> Path:
    directory = repo if name == "." else repo / name
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "package.yml"
    path.write_text(yaml.safe_dump(fields, sort_keys=True) if fields else "", encoding="utf-8")
    return path


def write_yaml(repo: Path, rel: str, data: Any) -> Path:
    return write_file(repo, rel, yaml.safe_dump(data, sort_keys=False))


def make_context(repo: Path, **overrides: Any) -> RunContext:
    ctx = RunContext(repo_root=repo, config=load_config(repo), quiet=True)
    return ctx.configure(**overrides) if overrides else ctx


def run_packguard(*args: str, cwd: Path) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(ROOT / "packages/packguard/src"), env.get("PYTHONPATH")]))
    return subprocess.run(
        [sys.executable, "-m", "packguard.cli", "--cwd", str(cwd), *args],
        cwd=cwd,
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )
