"""packguard: package boundary and namespace checks for modular monorepos."""

from __future__ import annotations

__version__ = "0.1.0"

from .core.context import RunContext
from .engine import Engine, ScanResult
from .errors import AmbiguousDefinitionError, ManifestError, PackguardError

__all__ = [
    "AmbiguousDefinitionError",
    "Engine",
    "ManifestError",
    "PackguardError",
    "RunContext",
    "ScanResult",
    "__version__",
]
