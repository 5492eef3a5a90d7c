"""Suppression ledger: per-package todo files and enablement files.

A todo file (`packguard_todo.yml`) maps rule ids to `{"Exclude": [paths]}`
and records violations that existed before a package adopted a rule. The
repository root may carry one too. An enablement file (`packguard.yml`)
maps rule ids to `{"Enabled": bool, "FailureMode": "strict"}` and may carry
an `inherit_from` directive.
"""

from __future__ import annotations

import json
import re
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any, Iterable

import yaml

from .core.logging import log_event
from .errors import PackguardError
from .exit_codes import ERR_CONFIG
from .model import ROOT_PACKAGE_NAME, Package

if TYPE_CHECKING:
    from .core.context import RunContext

EXCLUDE_KEY = "Exclude"
INCLUDE_KEY = "Include"
ENABLED_KEY = "Enabled"
FAILURE_MODE_KEY = "FailureMode"
INHERIT_KEY = "inherit_from"
STRICT = "strict"

_RULE_HEADER = re.compile(r"^([\w-]+/[\w-]+:)", re.M)


def _load_yaml_mapping(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise PackguardError(f"{path}: invalid YAML: {exc}", ERR_CONFIG, kind="ledger_error") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise PackguardError(f"{path}: expected a mapping of rule ids", ERR_CONFIG, kind="ledger_error")
    return data


def _try_load(path: Path) -> dict[str, Any] | None:
    try:
        return _load_yaml_mapping(path)
    except PackguardError:
        return None


def _is_path_list(value: Any) -> bool:
    return value is None or (isinstance(value, list) and all(isinstance(item, str) for item in value))


class SuppressionLedger:
    def __init__(self, ctx: RunContext) -> None:
        self.ctx = ctx
        self._todos: dict[str, dict[str, Any]] | None = None
        self._rules: dict[str, dict[str, Any] | None] = {}

    def bust_cache(self) -> None:
        self._todos = None
        self._rules = {}

    def _rel(self, path: Path) -> str:
        return path.relative_to(self.ctx.repo_root).as_posix()

    def todo_path(self, package: Package) -> Path:
        return self.ctx.repo_root / package.directory / self.ctx.config.todo_file

    def rules_path(self, package: Package) -> Path:
        return self.ctx.repo_root / package.directory / self.ctx.config.rules_file

    def _todo_file_paths(self) -> list[Path]:
        candidates = [self.ctx.repo_root / self.ctx.config.todo_file]
        candidates.extend(self.todo_path(package) for package in self.ctx.index.non_root())
        return [path for path in candidates if path.is_file()]

    def todo_files(self) -> dict[str, dict[str, Any]]:
        """Loaded todo files by package name; the root file is keyed `"."`."""
        if self._todos is None:
            todos: dict[str, dict[str, Any]] = {}
            root_todo = self.ctx.repo_root / self.ctx.config.todo_file
            if root_todo.is_file():
                todos[ROOT_PACKAGE_NAME] = _load_yaml_mapping(root_todo)
            for package in self.ctx.index.non_root():
                path = self.todo_path(package)
                if path.is_file():
                    todos[package.name] = _load_yaml_mapping(path)
            self._todos = todos
        return self._todos

    def load_rules_file(self, package: Package) -> dict[str, Any] | None:
        if package.name not in self._rules:
            path = self.rules_path(package)
            self._rules[package.name] = _load_yaml_mapping(path) if path.is_file() else None
        return self._rules[package.name]

    def rule_enabled_for(self, rule_id: str, package: Package | None) -> bool:
        if package is not None and not package.is_root:
            entry = (self.load_rules_file(package) or {}).get(rule_id)
            if isinstance(entry, dict) and ENABLED_KEY in entry:
                return bool(entry[ENABLED_KEY])
        return rule_id in self.ctx.config.enabled_rules

    @staticmethod
    def _excluded(todo: dict[str, Any], rule_id: str) -> list[str]:
        entry = todo.get(rule_id)
        if not isinstance(entry, dict) or not isinstance(entry.get(EXCLUDE_KEY), list):
            return []
        return [path for path in entry[EXCLUDE_KEY] if isinstance(path, str)]

    def exclusions_for(self, rule_id: str) -> set[str]:
        excluded: set[str] = set()
        for todo in self.todo_files().values():
            excluded.update(self._excluded(todo, rule_id))
        return excluded

    def is_suppressed(self, rule_id: str, path: str | PurePosixPath) -> bool:
        target = str(path)
        todos = self.todo_files()
        owner = self.ctx.index.owner_of(path)
        names = {ROOT_PACKAGE_NAME}
        if owner is not None:
            names.add(owner.name)
        return any(target in self._excluded(todos[name], rule_id) for name in names if name in todos)

    def _owned_by(self, path: str, package: Package) -> bool:
        try:
            owner = self.ctx.index.owner_of(path)
        except ValueError:
            # absolute path outside the repository
            return False
        return owner is not None and owner.name == package.name

    def regenerate(self, packages: Iterable[Package] | None = None) -> list[Path]:
        """Rebuild todo files from a fresh, unsuppressed scan of `packages`."""
        from .engine import Engine

        pool = self.ctx.index.non_root() if packages is None else packages
        targets = [package for package in pool if not package.is_root]
        for package in targets:
            path = self.todo_path(package)
            if path.is_file():
                path.unlink()
                log_event(self.ctx, "info", "ledger", "deleted", path=self._rel(path))
        self.bust_cache()
        if not targets:
            return []

        result = Engine(self.ctx).scan(
            paths=[self.ctx.repo_root / package.directory for package in targets],
            rule_ids=self.ctx.config.permitted_pack_level_rules,
            apply_suppressions=False,
        )
        wanted = {package.name for package in targets}
        grouped: dict[str, dict[str, list[str]]] = {}
        for offense in result.offenses:
            owner = self.ctx.index.owner_of(offense.path)
            if owner is None or owner.name not in wanted:
                continue
            excluded = grouped.setdefault(owner.name, {}).setdefault(offense.rule_id, [])
            if offense.path not in excluded:
                excluded.append(offense.path)

        written: list[Path] = []
        for package in targets:
            todo = grouped.get(package.name)
            if not todo or not self.rules_path(package).is_file():
                continue
            path = self.todo_path(package)
            payload = {rule_id: {EXCLUDE_KEY: sorted(paths)} for rule_id, paths in sorted(todo.items())}
            path.write_text(yaml.safe_dump(payload, sort_keys=True), encoding="utf-8")
            log_event(self.ctx, "info", "ledger", "wrote", path=self._rel(path), rules=len(payload))
            written.append(path)
        self.bust_cache()
        return written

    def write_default_rules_files(self, packages: Iterable[Package]) -> list[Path]:
        written: list[Path] = []
        for package in packages:
            if package.is_root:
                continue
            payload = {rule_id: {ENABLED_KEY: True} for rule_id in self.ctx.config.required_pack_level_rules}
            rendered = _RULE_HEADER.sub(r"\n\1", yaml.safe_dump(payload, sort_keys=False)).lstrip("\n")
            path = self.rules_path(package)
            path.write_text(rendered, encoding="utf-8")
            written.append(path)
        self._rules = {}
        return written

    def merged_rule_config(self) -> dict[str, dict[str, list[str]]]:
        merged: dict[str, dict[str, list[str]]] = {}
        for package in self.ctx.index.non_root():
            todo = self.todo_files().get(package.name, {})
            for rule_id in todo:
                excluded = merged.setdefault(rule_id, {}).setdefault(EXCLUDE_KEY, [])
                excluded.extend(self._excluded(todo, rule_id))
            for rule_id, entry in (self.load_rules_file(package) or {}).items():
                if not isinstance(entry, dict) or not entry.get(ENABLED_KEY):
                    continue
                include = merged.setdefault(rule_id, {}).setdefault(INCLUDE_KEY, [])
                include.append(f"{package.directory}/**/*")
        return merged

    def validate(self, packages: Iterable[Package] | None = None) -> list[str]:
        errors: list[str] = []
        root_todo = self.ctx.repo_root / self.ctx.config.todo_file
        if root_todo.is_file() and _try_load(root_todo) is None:
            errors.append(self._mapping_error(root_todo))
        for package in self.ctx.index.non_root() if packages is None else packages:
            if package.is_root:
                continue
            errors.extend(self._validate_todo(package))
            rules_path = self.rules_path(package)
            if not rules_path.is_file():
                continue
            loaded = _try_load(rules_path)
            if loaded is None:
                errors.append(self._mapping_error(rules_path))
                continue
            errors.extend(self._validate_rules_file(package, loaded))
            errors.extend(self._validate_strict(package, loaded))
        return errors

    def _mapping_error(self, path: Path) -> str:
        return f"{self._rel(path)} must map rule ids to configuration.\n"

    def _validate_todo(self, package: Package) -> list[str]:
        path = self.todo_path(package)
        if not path.is_file():
            return []
        loaded = _try_load(path)
        if loaded is None:
            return [self._mapping_error(path)]
        permitted = self.ctx.config.permitted_pack_level_rules
        shown = self._rel(path)
        errors: list[str] = []
        for rule_id, entry in loaded.items():
            if rule_id not in permitted:
                errors.append(
                    f"{shown} contains invalid configuration for {rule_id}.\n"
                    f"Please only configure the following rules on a per-pack basis: {json.dumps(list(permitted))}\n"
                    f"For ignoring other rules, please instead modify the top-level {self.ctx.config.todo_file} file.\n"
                )
            elif not isinstance(entry, dict) or list(entry) != [EXCLUDE_KEY] or not _is_path_list(entry[EXCLUDE_KEY]):
                errors.append(
                    f"{shown} contains invalid configuration for {rule_id}.\n"
                    f"Please ensure the only configuration for {rule_id} is `{EXCLUDE_KEY}`\n"
                )
            else:
                for excluded in entry[EXCLUDE_KEY] or []:
                    if self._owned_by(excluded, package):
                        continue
                    errors.append(
                        f"{shown} contains invalid configuration for {rule_id}.\n"
                        f"{excluded} does not belong to {package.name}. Please ensure you only add exclusions\n"
                        "for files within this pack.\n"
                    )
        return errors

    def _validate_rules_file(self, package: Package, loaded: dict[str, Any]) -> list[str]:
        config = self.ctx.config
        shown = self._rel(self.rules_path(package))
        errors = [
            f"{shown} is missing configuration for {rule_id}.\n"
            for rule_id in config.required_pack_level_rules
            if rule_id not in loaded
        ]
        for rule_id, entry in loaded.items():
            if rule_id == INHERIT_KEY:
                continue
            if rule_id not in config.permitted_pack_level_rules:
                errors.append(
                    f"{shown} contains invalid configuration for {rule_id}.\n"
                    f"Please only configure the following rules on a per-pack basis: "
                    f"{json.dumps(list(config.permitted_pack_level_rules))}\n"
                    f"For ignoring other rules, please instead modify the top-level {config.rules_file} file.\n"
                )
            elif not isinstance(entry, dict) or set(entry) - {ENABLED_KEY, FAILURE_MODE_KEY}:
                errors.append(
                    f"{shown} contains invalid configuration for {rule_id}.\n"
                    f"Please ensure the only configuration for {rule_id} is `{ENABLED_KEY}` and `{FAILURE_MODE_KEY}`\n"
                )
        return errors

    def _validate_strict(self, package: Package, loaded: dict[str, Any]) -> list[str]:
        shown = self._rel(self.rules_path(package))
        errors: list[str] = []
        for rule_id in self.ctx.config.permitted_pack_level_rules:
            entry = loaded.get(rule_id)
            if not isinstance(entry, dict) or entry.get(FAILURE_MODE_KEY) != STRICT:
                continue
            excluded: set[str] = set()
            for path in self._todo_file_paths():
                todo = _try_load(path)
                if todo is not None:
                    excluded.update(self._excluded(todo, rule_id))
            offending = sorted(path for path in excluded if self._owned_by(path, package))
            if not offending:
                continue
            listed = ", ".join(f"`{path}`" for path in offending)
            errors.append(
                f"{package.name} has set `{rule_id}` to `{FAILURE_MODE_KEY}: {STRICT}` in `{shown}`, "
                f"forbidding new exceptions. Please either remove {listed} from the top-level and "
                f"pack-specific `{self.ctx.config.todo_file}` files or remove `{FAILURE_MODE_KEY}: {STRICT}`."
            )
        return errors
