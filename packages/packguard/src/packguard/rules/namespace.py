"""Namespace rules: each package should expose a single root namespace.

Both rules derive the namespace a file establishes from its path (see
`packguard.convention`) and compare its first segment with the namespace
named after the owning package.

`namespaces/convention` is opt-in: packages listed in
`namespace_include_packs` are enforced, and they also reserve their namespace
so files in *other* packages cannot sit in it. `namespaces/root-is-pack-name`
enforces the same thing for every package it is enabled for.
"""

from __future__ import annotations

from ..convention import PathConvention
from ..core.config import NAMESPACE_RULE, ROOT_NAMESPACE_RULE
from ..model import NamespaceContext
from ..nodes import top_level_definition
from .base import Rule, Scan, SourceFile

OPTED_IN_MESSAGE = (
    "Based on the filepath, this file defines `{fqn}`, but it should be namespaced as "
    "`{expected}::{fqn}` with path `{path}`."
)
OWNED_ELSEWHERE_MESSAGE = (
    "Based on the filepath, this file defines `{fqn}`. `{owner}` prevents other packs from sitting in the "
    "`{actual}` namespace. This should be namespaced under `{expected}` with path `{path}`."
)


def namespace_context(convention: PathConvention, file: SourceFile) -> NamespaceContext | None:
    package = file.package
    if package is None or package.is_root:
        return None
    location = convention.locate(file.path, package)
    if location is None:
        return None
    return NamespaceContext(
        actual_namespace=location.segments[0],
        actual_fully_qualified_name=location.fully_qualified_name,
        expected_namespace=convention.package_namespace(package),
        expected_file_path=convention.expected_path(location),
    )


def _report_line(file: SourceFile) -> int:
    top = top_level_definition(file.unit)
    return top.line if top is not None else 1


class _NamespaceRule(Rule):
    def _context(self, scan: Scan, file: SourceFile) -> NamespaceContext | None:
        if file.package is None or file.package.automatic_namespace:
            return None
        context = namespace_context(scan.ctx.convention, file)
        if context is None:
            return None
        allowed = {context.expected_namespace, *scan.ctx.config.globally_permitted_namespaces}
        if context.actual_namespace in allowed:
            return None
        return context

    def _opted_in(self, scan: Scan, file: SourceFile, context: NamespaceContext) -> None:
        message = OPTED_IN_MESSAGE.format(
            fqn=context.actual_fully_qualified_name,
            expected=context.expected_namespace,
            path=context.expected_file_path,
        )
        scan.report(self, file, message, line=_report_line(file))


class NamespaceConventionRule(_NamespaceRule):
    rule_id = NAMESPACE_RULE
    description = "files must sit in their package's namespace when a package opts in or owns it"

    def _reserved(self, scan: Scan) -> dict[str, str]:
        def build() -> dict[str, str]:
            include = set(scan.ctx.config.namespace_include_packs)
            reserved: dict[str, str] = {}
            for package in scan.ctx.index.non_root():
                if package.name in include:
                    reserved[scan.ctx.convention.package_namespace(package)] = package.name
            return reserved

        return scan.memo("reserved-namespaces", build)

    def on_file(self, scan: Scan, file: SourceFile) -> None:
        context = self._context(scan, file)
        if context is None:
            return
        package = file.package
        if package is None:
            return
        if package.name in scan.ctx.config.namespace_include_packs:
            self._opted_in(scan, file, context)
            return
        owner = self._reserved(scan).get(context.actual_namespace)
        if owner is None:
            return
        message = OWNED_ELSEWHERE_MESSAGE.format(
            fqn=context.actual_fully_qualified_name,
            owner=owner,
            actual=context.actual_namespace,
            expected=context.expected_namespace,
            path=context.expected_file_path,
        )
        scan.report(self, file, message, line=_report_line(file))


class RootNamespaceIsPackNameRule(_NamespaceRule):
    rule_id = ROOT_NAMESPACE_RULE
    description = "every file's root namespace must be named after its package"

    def on_file(self, scan: Scan, file: SourceFile) -> None:
        context = self._context(scan, file)
        if context is not None:
            self._opted_in(scan, file, context)
