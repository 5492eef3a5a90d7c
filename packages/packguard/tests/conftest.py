from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import HealthCheck, settings

from helpers import make_context, write_package_yml
from packguard.core.context import RunContext

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

settings.register_profile("packguard", deadline=None, suppress_health_check=[HealthCheck.too_slow])
settings.load_profile("packguard")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    root.mkdir()
    write_package_yml(root, ".")
    return root


@pytest.fixture
def ctx(repo: Path) -> RunContext:
    return make_context(repo)
