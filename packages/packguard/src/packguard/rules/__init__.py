from __future__ import annotations

from ..errors import PackguardError
from ..exit_codes import ERR_USAGE
from .base import Rule, Scan, SourceFile
from .dependency import DependencyRule
from .file_constant import FileMatchesConstantRule
from .namespace import NamespaceConventionRule, RootNamespaceIsPackNameRule
from .privacy import PrivacyRule

RULES: tuple[Rule, ...] = (
    DependencyRule(),
    PrivacyRule(),
    NamespaceConventionRule(),
    RootNamespaceIsPackNameRule(),
    FileMatchesConstantRule(),
)


def rule_ids() -> list[str]:
    return [rule.rule_id for rule in RULES]


def select_rules(ids: list[str] | tuple[str, ...] | None = None) -> tuple[Rule, ...]:
    if ids is None:
        return RULES
    known = {rule.rule_id: rule for rule in RULES}
    unknown = sorted(set(ids) - set(known))
    if unknown:
        raise PackguardError(f"unknown rule ids: {', '.join(unknown)}", ERR_USAGE, kind="usage_error")
    return tuple(rule for rule in RULES if rule.rule_id in ids)


__all__ = ["RULES", "Rule", "Scan", "SourceFile", "rule_ids", "select_rules"]
