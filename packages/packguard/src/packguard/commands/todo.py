from __future__ import annotations

import argparse

import yaml

from ..core.context import RunContext
from ..errors import PackguardError
from ..exit_codes import ERR_USAGE, ERR_VALIDATION, OK
from ..model import Package
from ..reporting import render_payload


def configure_todo_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("todo", help="manage per-package todo and enablement files")
    p_sub = p.add_subparsers(dest="todo_cmd", required=True)
    regen = p_sub.add_parser("regenerate", help="rebuild todo files from a fresh scan")
    regen.add_argument("packages", nargs="*", help="package names (default: every package)")
    p_sub.add_parser("validate", help="check todo and enablement files for invalid entries")
    init = p_sub.add_parser("init", help="write default enablement files")
    init.add_argument("packages", nargs="*", help="package names (default: every package)")
    p_sub.add_parser("config", help="print the merged per-package rule configuration as YAML")


def _selected(ctx: RunContext, names: list[str]) -> tuple[Package, ...] | None:
    if not names:
        return None
    packages: list[Package] = []
    for name in names:
        package = ctx.index.find(name)
        if package is None:
            raise PackguardError(f"unknown package `{name}`", ERR_USAGE, kind="usage_error")
        packages.append(package)
    return tuple(packages)


def run_todo_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    as_json = ctx.output_format == "json"
    ledger = ctx.ledger
    if ns.todo_cmd == "regenerate":
        written = ledger.regenerate(_selected(ctx, ns.packages))
        rel = [path.relative_to(ctx.repo_root).as_posix() for path in written]
        if as_json:
            print(render_payload({"schema_version": 1, "tool": "packguard", "kind": "todo-regenerate", "written": rel}, True))
        else:
            for path in rel:
                print(f"wrote {path}")
        return OK
    if ns.todo_cmd == "validate":
        errors = ledger.validate()
        if as_json:
            payload = {
                "schema_version": 1,
                "tool": "packguard",
                "kind": "todo-validate",
                "status": "pass" if not errors else "fail",
                "errors": errors,
            }
            print(render_payload(payload, True))
        elif errors:
            print("todo validation failed:")
            for err in errors:
                print(f"- {err.rstrip()}")
        else:
            print("todo validation passed")
        return OK if not errors else ERR_VALIDATION
    if ns.todo_cmd == "init":
        selected = _selected(ctx, ns.packages)
        written = ledger.write_default_rules_files(ctx.index.non_root() if selected is None else selected)
        for path in written:
            print(f"wrote {path.relative_to(ctx.repo_root).as_posix()}")
        return OK
    if ns.todo_cmd == "config":
        merged = ledger.merged_rule_config()
        if as_json:
            print(render_payload(merged, True))
        else:
            print(yaml.safe_dump(merged, sort_keys=True), end="")
        return OK
    return ERR_USAGE
