from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from .config import PackguardConfig, load_config
from .logging import log_event
from .repo_root import find_repo_root

if TYPE_CHECKING:
    from ..convention import PathConvention
    from ..index import PackageIndex
    from ..ledger import SuppressionLedger
    from ..resolver import ConstantResolver

OutputFormat = Literal["text", "json"]


@dataclass
class RunContext:
    """Everything one analysis run needs; caches live here, not in module globals."""

    repo_root: Path
    config: PackguardConfig = field(default_factory=PackguardConfig)
    output_format: OutputFormat = "text"
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    _index: PackageIndex | None = field(default=None, repr=False)
    _ledger: SuppressionLedger | None = field(default=None, repr=False)
    _resolver: ConstantResolver | None = field(default=None, repr=False)
    _convention: PathConvention | None = field(default=None, repr=False)

    @classmethod
    def from_args(
        cls,
        cwd: str | None = None,
        output_format: OutputFormat = "text",
        quiet: bool = False,
        verbose: bool = False,
        log_json: bool = False,
    ) -> "RunContext":
        repo_root = find_repo_root(Path(cwd) if cwd else None)
        return cls(
            repo_root=repo_root,
            config=load_config(repo_root),
            output_format=output_format,
            quiet=quiet,
            verbose=verbose,
            log_json=log_json,
        )

    @property
    def index(self) -> PackageIndex:
        if self._index is None:
            from ..index import PackageIndex

            self._index = PackageIndex(self.repo_root, self.config)
            log_event(self, "debug", "index", "loaded", packages=len(self._index.all()))
        return self._index

    @property
    def ledger(self) -> SuppressionLedger:
        if self._ledger is None:
            from ..ledger import SuppressionLedger

            self._ledger = SuppressionLedger(self)
        return self._ledger

    @property
    def resolver(self) -> ConstantResolver:
        if self._resolver is None:
            from ..resolver import ConstantResolver

            self._resolver = ConstantResolver(self)
        return self._resolver

    @property
    def convention(self) -> PathConvention:
        if self._convention is None:
            from ..convention import PathConvention

            self._convention = PathConvention(self.config)
        return self._convention

    def bust_cache(self) -> None:
        if self._index is not None:
            self._index.bust_cache()
        self._index = None
        self._ledger = None
        self._resolver = None
        self._convention = None

    def configure(self, **overrides: Any) -> "RunContext":
        return replace(
            self,
            config=self.config.with_overrides(**overrides),
            _index=None,
            _ledger=None,
            _resolver=None,
            _convention=None,
        )
