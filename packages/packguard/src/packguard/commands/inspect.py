from __future__ import annotations

import argparse

from ..core.context import RunContext
from ..exit_codes import OK
from ..reporting import package_row, reference_payload, render_payload
from ..rules import RULES


def configure_inspect_parsers(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    resolve_p = sub.add_parser("resolve", help="show which package defines an identifier")
    resolve_p.add_argument("identifier", help="scoped identifier such as Apples::Green")
    resolve_p.add_argument("--from", dest="from_path", required=True, help="path of the referencing file")
    sub.add_parser("packages", help="list packages and their enforcement flags")
    sub.add_parser("rules", help="list rule ids, whether they run by default and what they check")


def run_resolve_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    reference = ctx.resolver.resolve(ns.identifier, ns.from_path)
    if ctx.output_format == "json":
        print(render_payload(reference_payload(ns.identifier, reference), True))
        return OK
    if reference is None:
        print(f"{ns.identifier}: unresolved")
        return OK
    visibility = "public" if reference.is_public else "private"
    print(f"{reference.identifier_name}: {reference.definition_path} ({reference.defining_package.name}, {visibility})")
    return OK


def run_packages_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    rows = [package_row(package) for package in ctx.index.all()]
    if ctx.output_format == "json":
        payload = {"schema_version": 1, "tool": "packguard", "kind": "packages", "packages": rows}
        print(render_payload(payload, True))
        return OK
    for package in ctx.index.all():
        flags = [name for name, on in (("dependencies", package.enforces_dependencies), ("privacy", package.enforces_privacy)) if on]
        depends_on = ",".join(sorted(package.dependencies)) or "-"
        print(f"{package.name}\tenforces={','.join(flags) or '-'}\tdepends_on={depends_on}")
    return OK


def run_rules_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    rows = [
        {"id": rule.rule_id, "description": rule.description, "enabled": rule.rule_id in ctx.config.enabled_rules}
        for rule in RULES
    ]
    if ctx.output_format == "json":
        payload = {"schema_version": 1, "tool": "packguard", "kind": "rules", "rules": rows}
        print(render_payload(payload, True))
        return OK
    for row in rows:
        state = "on" if row["enabled"] else "off"
        print(f"{row['id']}\t{state}\t{row['description']}")
    return OK
