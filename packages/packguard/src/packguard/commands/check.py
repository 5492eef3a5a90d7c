from __future__ import annotations

import argparse

from ..schema import validate
from ..core.context import RunContext
from ..engine import Engine
from ..exit_codes import ERR_VIOLATIONS, OK
from ..reporting import check_payload, render_check_text, render_payload
from ..rules import rule_ids


def configure_check_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("check", help="scan source files for boundary and namespace offenses")
    p.add_argument("paths", nargs="*", help="files or directories to scan (default: whole repository)")
    p.add_argument(
        "--rule",
        action="append",
        dest="rules",
        metavar="ID",
        help=f"only run this rule id (repeatable; one of {', '.join(rule_ids())})",
    )
    p.add_argument("--no-suppressions", action="store_true", help="ignore todo file exclusions")


def run_check_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    result = Engine(ctx).scan(
        paths=ns.paths or None,
        rule_ids=ns.rules,
        apply_suppressions=not ns.no_suppressions,
    )
    if ctx.output_format == "json":
        payload = check_payload(result)
        validate("check-report", payload)
        print(render_payload(payload, True))
    else:
        print(render_check_text(result))
    return OK if not result.offenses else ERR_VIOLATIONS
