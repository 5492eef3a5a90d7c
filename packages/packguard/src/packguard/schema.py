"""JSON schemas shipped with packguard.

`package-manifest` checks every `package.yml` before it becomes a `Package`;
`check-report` pins the shape of `packguard --json check` output.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema
from jsonschema.exceptions import best_match

from .errors import PackguardError
from .exit_codes import ERR_VALIDATION

SCHEMA_DIR = Path(__file__).parent / "schemas"


@lru_cache(maxsize=None)
def load_schema(name: str) -> dict[str, Any]:
    path = SCHEMA_DIR / f"{name}.schema.json"
    if not path.is_file():
        raise PackguardError(f"unknown schema: {name}", ERR_VALIDATION, kind="schema_validation")
    return json.loads(path.read_text(encoding="utf-8"))


@lru_cache(maxsize=None)
def _validator(name: str) -> jsonschema.Draft7Validator:
    return jsonschema.Draft7Validator(load_schema(name))


def validate(name: str, payload: Any, *, source: str = "") -> None:
    error = best_match(_validator(name).iter_errors(payload))
    if error is None:
        return
    loc = "/".join(str(p) for p in error.absolute_path) or "<root>"
    where = f"{source}: " if source else ""
    raise PackguardError(
        f"{where}schema validation failed for {name} at {loc}: {error.message}",
        ERR_VALIDATION,
        kind="schema_validation",
    )
