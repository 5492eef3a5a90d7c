from __future__ import annotations

import argparse
import json
import sys

from . import __version__
from .commands import (
    configure_check_parser,
    configure_inspect_parsers,
    configure_todo_parser,
    run_check_command,
    run_packages_command,
    run_resolve_command,
    run_rules_command,
    run_todo_command,
)
from .core.context import RunContext
from .core.logging import log_event
from .errors import PackguardError
from .exit_codes import ERR_CONFIG, ERR_USAGE


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="packguard", description="package boundary checks for modular monorepos")
    p.add_argument("--version", action="version", version=f"packguard {__version__}")
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--cwd", help="directory to start repository root detection from")
    p.add_argument("--log-json", action="store_true", help="emit structured log events as JSON")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable verbose diagnostics")
    vg.add_argument("--quiet", action="store_true", help="only emit errors")
    sub = p.add_subparsers(dest="cmd", required=True)
    configure_check_parser(sub)
    configure_inspect_parsers(sub)
    configure_todo_parser(sub)
    return p


def _emit_error(exc: PackguardError, as_json: bool) -> None:
    if as_json:
        payload = {
            "schema_version": 1,
            "tool": "packguard",
            "status": "fail",
            "error": {"message": str(exc), "code": exc.code, "kind": exc.kind},
        }
        print(json.dumps(payload, sort_keys=True), file=sys.stderr)
    else:
        print(str(exc), file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    ns = p.parse_args(argv)
    fmt = "json" if ns.json else "text"
    try:
        try:
            ctx = RunContext.from_args(ns.cwd, fmt, ns.quiet, ns.verbose, ns.log_json)
        except RuntimeError as exc:
            raise PackguardError(str(exc), ERR_CONFIG, kind="config_error") from exc
        log_event(ctx, "debug", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format, repo_root=ctx.repo_root)
        if ns.cmd == "check":
            return run_check_command(ctx, ns)
        if ns.cmd == "resolve":
            return run_resolve_command(ctx, ns)
        if ns.cmd == "rules":
            return run_rules_command(ctx, ns)
        if ns.cmd == "packages":
            return run_packages_command(ctx, ns)
        if ns.cmd == "todo":
            return run_todo_command(ctx, ns)
        return ERR_USAGE
    except PackguardError as exc:
        _emit_error(exc, fmt == "json")
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
