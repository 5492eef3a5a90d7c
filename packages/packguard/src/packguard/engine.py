from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Iterable

from .core.logging import log_event
from .index import to_repo_path
from .model import Offense
from .rules import Rule, Scan, SourceFile, select_rules
from .ruby_source import parse_source

if TYPE_CHECKING:
    from .core.context import RunContext


@dataclass(frozen=True)
class ScanResult:
    offenses: tuple[Offense, ...]
    suppressed_count: int
    files_scanned: int

    @property
    def status(self) -> str:
        return "pass" if not self.offenses else "fail"


class Engine:
    def __init__(self, ctx: RunContext) -> None:
        self.ctx = ctx

    def iter_source_files(self, paths: Iterable[str | Path] | None = None) -> list[PurePosixPath]:
        config = self.ctx.config
        roots = [Path(p) for p in paths] if paths is not None else [self.ctx.repo_root]
        found: set[PurePosixPath] = set()
        for root in roots:
            root = root if root.is_absolute() else self.ctx.repo_root / root
            if root.is_file():
                if root.name.endswith(config.extension):
                    found.add(to_repo_path(self.ctx.repo_root, root))
                continue
            for dirpath, dirnames, filenames in os.walk(root):
                dirnames[:] = sorted(d for d in dirnames if d not in config.exclude_dirs)
                for name in filenames:
                    if name.endswith(config.extension):
                        found.add(to_repo_path(self.ctx.repo_root, Path(dirpath) / name))
        return sorted(found)

    def _applicable(self, rules: tuple[Rule, ...], file_path: PurePosixPath) -> list[Rule]:
        package = self.ctx.index.owner_of(file_path)
        return [rule for rule in rules if self.ctx.ledger.rule_enabled_for(rule.rule_id, package)]

    def scan(
        self,
        paths: Iterable[str | Path] | None = None,
        rule_ids: Iterable[str] | None = None,
        apply_suppressions: bool = True,
    ) -> ScanResult:
        rules = select_rules(None if rule_ids is None else tuple(rule_ids))
        files = self.iter_source_files(paths)
        log_event(
            self.ctx,
            "info",
            "engine",
            "scan-start",
            files=len(files),
            rules=",".join(rule.rule_id for rule in rules),
            suppressions=apply_suppressions,
        )
        scan = Scan(ctx=self.ctx, apply_suppressions=apply_suppressions)
        for file_path in files:
            applicable = self._applicable(rules, file_path)
            if not applicable:
                continue
            text = (self.ctx.repo_root / file_path).read_text(encoding="utf-8", errors="replace")
            source = SourceFile(path=file_path, package=self.ctx.index.owner_of(file_path), unit=parse_source(text))
            for rule in applicable:
                rule.on_file(scan, source)
            for ref in source.unit.references:
                for rule in applicable:
                    rule.on_reference(scan, source, ref)
            log_event(self.ctx, "debug", "engine", "scanned", path=str(file_path), rules=len(applicable))
        offenses = tuple(sorted(scan.offenses, key=lambda offense: offense.canonical_key))
        log_event(
            self.ctx,
            "info",
            "engine",
            "scan-finish",
            files=len(files),
            offenses=len(offenses),
            suppressed=scan.suppressed_count,
        )
        return ScanResult(offenses=offenses, suppressed_count=scan.suppressed_count, files_scanned=len(files))
