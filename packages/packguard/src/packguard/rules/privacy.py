from __future__ import annotations

from ..core.config import PRIVACY_RULE
from ..nodes import ConstRef
from .base import Rule, Scan, SourceFile, cross_package_reference

MESSAGE = "Privacy violation detected. See https://github.com/Shopify/packwerk/blob/main/RESOLVING_VIOLATIONS.md for help"


class PrivacyRule(Rule):
    rule_id = PRIVACY_RULE
    description = "references to definitions outside another package's public area"

    def on_reference(self, scan: Scan, file: SourceFile, ref: ConstRef) -> None:
        reference = cross_package_reference(scan, file, ref)
        if reference is None:
            return
        if reference.is_public or not reference.defining_package.enforces_privacy:
            return
        scan.report(self, file, MESSAGE, line=ref.line, column=ref.column)
