from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore[no-redef]

from ..errors import PackguardError
from ..exit_codes import ERR_CONFIG

DEPENDENCY_RULE = "boundaries/dependency"
PRIVACY_RULE = "boundaries/privacy"
NAMESPACE_RULE = "namespaces/convention"
ROOT_NAMESPACE_RULE = "namespaces/root-is-pack-name"
FILE_CONSTANT_RULE = "namespaces/file-matches-constant"

KNOWN_RULES: tuple[str, ...] = (
    DEPENDENCY_RULE,
    PRIVACY_RULE,
    NAMESPACE_RULE,
    ROOT_NAMESPACE_RULE,
    FILE_CONSTANT_RULE,
)

_DEFAULT_EXCLUDE_DIRS: tuple[str, ...] = (
    ".git",
    ".venv",
    "node_modules",
    "vendor",
    "tmp",
    "log",
    "__pycache__",
)


@dataclass(frozen=True)
class PackguardConfig:
    source_roots: tuple[str, ...] = ("app",)
    public_dir: str = "app/public"
    extension: str = ".rb"
    shared_concern_dirs: tuple[str, ...] = ("*/concerns",)
    acronyms: tuple[str, ...] = ()
    globally_permitted_namespaces: tuple[str, ...] = ()
    namespace_include_packs: tuple[str, ...] = ()
    permitted_pack_level_rules: tuple[str, ...] = KNOWN_RULES
    required_pack_level_rules: tuple[str, ...] = ()
    enabled_rules: tuple[str, ...] = (DEPENDENCY_RULE, PRIVACY_RULE)
    reference_exempt_substrings: tuple[str, ...] = ()
    todo_file: str = "packguard_todo.yml"
    rules_file: str = "packguard.yml"
    manifest_file: str = "package.yml"
    exclude_dirs: tuple[str, ...] = _DEFAULT_EXCLUDE_DIRS

    @property
    def acronym_map(self) -> dict[str, str]:
        return {acronym.lower(): acronym for acronym in self.acronyms}

    def with_overrides(self, **overrides: Any) -> "PackguardConfig":
        return replace(self, **_coerce(overrides))


def _read_table(pyproject: Path) -> dict[str, Any] | None:
    if not pyproject.is_file():
        return None
    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise PackguardError(f"invalid TOML in {pyproject}: {exc}", ERR_CONFIG, kind="config_error") from exc
    table = data.get("tool", {}).get("packguard")
    if table is None:
        return None
    if not isinstance(table, dict):
        raise PackguardError(f"{pyproject}: [tool.packguard] must be a table", ERR_CONFIG, kind="config_error")
    return table


def has_packguard_table(pyproject: Path) -> bool:
    try:
        return _read_table(pyproject) is not None
    except PackguardError:
        return False


def _coerce(raw: dict[str, Any]) -> dict[str, Any]:
    known = {f.name: f for f in fields(PackguardConfig)}
    out: dict[str, Any] = {}
    for key, value in raw.items():
        name = key.replace("-", "_")
        if name not in known:
            raise PackguardError(f"unknown packguard config key `{key}`", ERR_CONFIG, kind="config_error")
        default = known[name].default
        if isinstance(default, tuple):
            if isinstance(value, str) or not isinstance(value, (list, tuple)):
                raise PackguardError(f"packguard config `{key}` must be a list of strings", ERR_CONFIG, kind="config_error")
            out[name] = tuple(str(item) for item in value)
        else:
            if not isinstance(value, str):
                raise PackguardError(f"packguard config `{key}` must be a string", ERR_CONFIG, kind="config_error")
            out[name] = value
    unknown_rules = sorted(
        set(out.get("permitted_pack_level_rules", ()))
        .union(out.get("required_pack_level_rules", ()), out.get("enabled_rules", ()))
        .difference(KNOWN_RULES)
    )
    if unknown_rules:
        raise PackguardError(f"unknown rule ids in packguard config: {unknown_rules}", ERR_CONFIG, kind="config_error")
    return out


def load_config(repo_root: Path) -> PackguardConfig:
    table = _read_table(repo_root / "pyproject.toml")
    if not table:
        return PackguardConfig()
    return PackguardConfig(**_coerce(table))
