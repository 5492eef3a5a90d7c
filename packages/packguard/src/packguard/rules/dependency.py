from __future__ import annotations

from ..core.config import DEPENDENCY_RULE
from ..nodes import ConstRef
from .base import Rule, Scan, SourceFile, cross_package_reference

MESSAGE = "Dependency violation detected. See https://github.com/Shopify/packwerk/blob/main/RESOLVING_VIOLATIONS.md for help"


class DependencyRule(Rule):
    rule_id = DEPENDENCY_RULE
    description = "references into packages that are not declared dependencies"

    def on_reference(self, scan: Scan, file: SourceFile, ref: ConstRef) -> None:
        reference = cross_package_reference(scan, file, ref)
        if reference is None:
            return
        # Generated API namespaces are resolved by name only and misfire here.
        if any(fragment in reference.identifier_name for fragment in scan.ctx.config.reference_exempt_substrings):
            return
        referencing = reference.referencing_package
        if referencing is None:
            return
        if reference.defining_package.name in referencing.dependencies:
            return
        if not referencing.enforces_dependencies:
            return
        scan.report(self, file, MESSAGE, line=ref.line, column=ref.column)
