from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any, Callable

from ..model import ConstantReference, Offense, Package, Severity
from ..nodes import ConstRef, SourceUnit, is_partial_reference

if TYPE_CHECKING:
    from ..core.context import RunContext


@dataclass(frozen=True)
class SourceFile:
    path: PurePosixPath
    package: Package | None
    unit: SourceUnit


@dataclass
class Scan:
    """Mutable state of one engine run, handed to every rule callback."""

    ctx: RunContext
    apply_suppressions: bool = True
    offenses: list[Offense] = field(default_factory=list)
    suppressed_count: int = 0
    _memo: dict[str, Any] = field(default_factory=dict, repr=False)
    _resolved: dict[tuple[str, PurePosixPath], ConstantReference | None] = field(default_factory=dict, repr=False)

    def memo(self, key: str, build: Callable[[], Any]) -> Any:
        if key not in self._memo:
            self._memo[key] = build()
        return self._memo[key]

    def resolve(self, ref: ConstRef, path: PurePosixPath) -> ConstantReference | None:
        key = (ref.name, path)
        if key not in self._resolved:
            self._resolved[key] = self.ctx.resolver.resolve(ref.name, path)
        return self._resolved[key]

    def report(
        self,
        rule: Rule,
        file: SourceFile,
        message: str,
        *,
        line: int = 1,
        column: int = 0,
        severity: Severity = Severity.ERROR,
    ) -> bool:
        if self.apply_suppressions and self.ctx.ledger.is_suppressed(rule.rule_id, file.path):
            self.suppressed_count += 1
            return False
        self.offenses.append(
            Offense(
                rule_id=rule.rule_id,
                path=str(file.path),
                message=message,
                line=line,
                column=column,
                severity=severity,
            )
        )
        return True


class Rule:
    rule_id = ""
    description = ""

    def on_file(self, scan: Scan, file: SourceFile) -> None:
        return None

    def on_reference(self, scan: Scan, file: SourceFile, ref: ConstRef) -> None:
        return None


def cross_package_reference(scan: Scan, file: SourceFile, ref: ConstRef) -> ConstantReference | None:
    """Resolve `ref` unless it is partial, unresolvable, or stays inside one package."""
    if is_partial_reference(ref):
        return None
    reference = scan.resolve(ref, file.path)
    if reference is None or reference.referencing_package is None:
        return None
    if reference.is_same_package:
        return None
    return reference
