from __future__ import annotations

from dataclasses import dataclass, field

from .exit_codes import ERR_CONFIG, ERR_INTERNAL


@dataclass
class PackguardError(Exception):
    message: str
    code: int = ERR_INTERNAL
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message


@dataclass
class ManifestError(PackguardError):
    code: int = ERR_CONFIG
    kind: str = "manifest_error"


@dataclass
class AmbiguousDefinitionError(PackguardError):
    """More than one file claims the same fully-qualified identifier."""

    identifier: str = ""
    candidates: tuple[str, ...] = field(default_factory=tuple)
    kind: str = "ambiguous_definition"
