from __future__ import annotations

import json
from typing import Any

from .engine import ScanResult
from .model import ConstantReference, Offense, Package


def offense_row(offense: Offense) -> dict[str, object]:
    return {
        "rule": offense.rule_id,
        "path": offense.path,
        "line": offense.line,
        "column": offense.column,
        "severity": offense.severity.value,
        "message": offense.message,
    }


def check_payload(result: ScanResult) -> dict[str, object]:
    return {
        "schema_version": 1,
        "tool": "packguard",
        "kind": "check-report",
        "status": result.status,
        "offense_count": len(result.offenses),
        "suppressed_count": result.suppressed_count,
        "files_scanned": result.files_scanned,
        "offenses": [offense_row(offense) for offense in result.offenses],
    }


def render_check_text(result: ScanResult) -> str:
    lines = [f"{o.path}:{o.line}:{o.column}: {o.rule_id}: {o.message}" for o in result.offenses]
    lines.append(
        f"{result.files_scanned} files scanned, {len(result.offenses)} offenses, "
        f"{result.suppressed_count} suppressed"
    )
    return "\n".join(lines)


def reference_payload(identifier: str, reference: ConstantReference | None) -> dict[str, object]:
    if reference is None:
        return {"schema_version": 1, "tool": "packguard", "kind": "resolve", "identifier": identifier, "resolved": False}
    referencing = reference.referencing_package
    return {
        "schema_version": 1,
        "tool": "packguard",
        "kind": "resolve",
        "identifier": reference.identifier_name,
        "resolved": True,
        "root_namespace": reference.root_namespace,
        "defining_package": reference.defining_package.name,
        "definition_path": str(reference.definition_path),
        "referencing_path": str(reference.referencing_path),
        "referencing_package": referencing.name if referencing is not None else None,
        "public": reference.is_public,
    }


def package_row(package: Package) -> dict[str, object]:
    return {
        "name": package.name,
        "directory": str(package.directory),
        "dependencies": sorted(package.dependencies),
        "enforce_dependencies": package.enforces_dependencies,
        "enforce_privacy": package.enforces_privacy,
        "public_path": str(package.public_path) if package.public_path is not None else None,
    }


def render_payload(payload: dict[str, Any], as_json: bool) -> str:
    if as_json:
        return json.dumps(payload, sort_keys=True)
    return json.dumps(payload, indent=2, sort_keys=True)
