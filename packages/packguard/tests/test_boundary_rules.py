from __future__ import annotations

from pathlib import Path

import pytest

from helpers import make_context, write_file, write_package_yml, write_yaml
from packguard.core.config import DEPENDENCY_RULE, PRIVACY_RULE
from packguard.engine import Engine
from packguard.errors import AmbiguousDefinitionError
from packguard.rules.dependency import MESSAGE as DEPENDENCY_MESSAGE
from packguard.rules.privacy import MESSAGE as PRIVACY_MESSAGE

TOOLS_FILE = "packs/tools/app/services/tools.rb"
APPLES_FILE = "packs/apples/app/services/apples.rb"


def _scan(repo: Path, path: str, rule: str, **overrides: object):
    return Engine(make_context(repo, **overrides)).scan(paths=[path], rule_ids=[rule])


@pytest.fixture
def dependency_repo(repo: Path) -> Path:
    write_package_yml(repo, "packs/apples")
    write_package_yml(repo, "packs/tools", enforce_dependencies=True)
    write_file(repo, "packs/apples/app/public/apples.rb", "module Apples\nend\n")
    write_file(repo, "packs/apples/app/public/apples/green.rb", "class Apples::Green\nend\n")
    write_file(repo, TOOLS_FILE, "module Tools\n  def self.run\n    Apples.call\n  end\nend\n")
    return repo


def test_undeclared_dependency_is_reported_at_reference(dependency_repo: Path) -> None:
    result = _scan(dependency_repo, TOOLS_FILE, DEPENDENCY_RULE)
    assert [(o.rule_id, o.path, o.line, o.column, o.message) for o in result.offenses] == [
        (DEPENDENCY_RULE, TOOLS_FILE, 3, 4, DEPENDENCY_MESSAGE)
    ]
    assert result.files_scanned == 1


def test_reference_inside_string_interpolation_is_reported(dependency_repo: Path) -> None:
    write_file(dependency_repo, TOOLS_FILE, 'module Tools\n  def self.run\n    log "picked #{Apples.call}"\n  end\nend\n')
    result = _scan(dependency_repo, TOOLS_FILE, DEPENDENCY_RULE)
    assert [(o.line, o.column) for o in result.offenses] == [(3, 18)]


def test_declared_dependency_is_not_reported(dependency_repo: Path) -> None:
    write_package_yml(dependency_repo, "packs/tools", dependencies=["packs/apples"])
    assert _scan(dependency_repo, TOOLS_FILE, DEPENDENCY_RULE).offenses == ()


def test_package_not_enforcing_dependencies_is_not_reported(dependency_repo: Path) -> None:
    write_package_yml(dependency_repo, "packs/tools", enforce_dependencies=False)
    assert _scan(dependency_repo, TOOLS_FILE, DEPENDENCY_RULE).offenses == ()


def test_partial_reference_is_checked_once(dependency_repo: Path) -> None:
    write_file(dependency_repo, TOOLS_FILE, "module Tools\n  Apples::Green.new\nend\n")
    result = _scan(dependency_repo, TOOLS_FILE, DEPENDENCY_RULE)
    assert [(o.line, o.column) for o in result.offenses] == [(2, 2)]


def test_exempt_substrings_skip_dependency_check(dependency_repo: Path) -> None:
    result = _scan(dependency_repo, TOOLS_FILE, DEPENDENCY_RULE, reference_exempt_substrings=["Apples"])
    assert result.offenses == ()


def test_suppressed_violation_is_counted_not_reported(dependency_repo: Path) -> None:
    write_yaml(dependency_repo, "packs/tools/packguard_todo.yml", {DEPENDENCY_RULE: {"Exclude": [TOOLS_FILE]}})
    result = _scan(dependency_repo, TOOLS_FILE, DEPENDENCY_RULE)
    assert result.offenses == ()
    assert result.suppressed_count == 1

    unfiltered = Engine(make_context(dependency_repo)).scan(
        paths=[TOOLS_FILE], rule_ids=[DEPENDENCY_RULE], apply_suppressions=False
    )
    assert len(unfiltered.offenses) == 1


def test_root_todo_file_suppresses_too(dependency_repo: Path) -> None:
    write_yaml(dependency_repo, "packguard_todo.yml", {DEPENDENCY_RULE: {"Exclude": [TOOLS_FILE]}})
    assert _scan(dependency_repo, TOOLS_FILE, DEPENDENCY_RULE).offenses == ()


def test_ambiguous_definition_escapes_the_scan(dependency_repo: Path) -> None:
    write_file(dependency_repo, "packs/apples/app/services/apples.rb", "module Apples\nend\n")
    with pytest.raises(AmbiguousDefinitionError):
        _scan(dependency_repo, TOOLS_FILE, DEPENDENCY_RULE)


@pytest.fixture
def privacy_repo(repo: Path) -> Path:
    write_package_yml(repo, "packs/apples", enforce_privacy=True)
    write_package_yml(repo, "packs/tools", enforce_privacy=True)
    write_file(repo, "packs/tools/app/services/tools.rb", "module Tools\nend\n")
    write_file(repo, APPLES_FILE, "class Apples\n  Tools\nend\n")
    return repo


def test_private_definition_is_reported(privacy_repo: Path) -> None:
    result = _scan(privacy_repo, APPLES_FILE, PRIVACY_RULE)
    assert [(o.rule_id, o.line, o.column, o.message) for o in result.offenses] == [
        (PRIVACY_RULE, 2, 2, PRIVACY_MESSAGE)
    ]


def test_public_definition_is_not_reported(privacy_repo: Path) -> None:
    (privacy_repo / "packs/tools/app/services/tools.rb").unlink()
    write_file(privacy_repo, "packs/tools/app/public/tools.rb", "module Tools\nend\n")
    assert _scan(privacy_repo, APPLES_FILE, PRIVACY_RULE).offenses == ()


def test_defining_package_without_privacy_is_not_reported(privacy_repo: Path) -> None:
    write_package_yml(privacy_repo, "packs/tools")
    assert _scan(privacy_repo, APPLES_FILE, PRIVACY_RULE).offenses == ()


def test_identifier_outside_convention_is_not_reported(privacy_repo: Path) -> None:
    write_file(privacy_repo, "packs/tools/app/services/blah.rb", "class Blah\nend\n")
    write_file(privacy_repo, APPLES_FILE, "class Apples\n  Blah\nend\n")
    assert _scan(privacy_repo, APPLES_FILE, PRIVACY_RULE).offenses == ()


def test_unqualified_shared_sub_namespace_is_a_known_false_positive(privacy_repo: Path) -> None:
    write_file(privacy_repo, "packs/apples/app/public/apples/tools/pruners.rb", "module Apples::Tools::Pruners\nend\n")
    write_file(privacy_repo, "packs/tools/app/services/tools/pruners.rb", "module Tools::Pruners\nend\n")
    write_file(privacy_repo, APPLES_FILE, "class Apples\n  Tools::Pruners\nend\n")
    assert len(_scan(privacy_repo, APPLES_FILE, PRIVACY_RULE).offenses) == 1

    write_file(privacy_repo, APPLES_FILE, "class Apples\n  Apples::Tools::Pruners\nend\n")
    assert _scan(privacy_repo, APPLES_FILE, PRIVACY_RULE).offenses == ()


@pytest.mark.parametrize("rule", [DEPENDENCY_RULE, PRIVACY_RULE])
def test_same_package_reference_is_never_reported(repo: Path, rule: str) -> None:
    write_package_yml(repo, "packs/apples", enforce_privacy=True, enforce_dependencies=True)
    write_file(repo, "packs/apples/app/services/apples/green.rb", "class Apples::Green\nend\n")
    write_file(repo, "packs/apples/app/public/apples.rb", "module Apples\n  Apples::Green.new\nend\n")
    assert _scan(repo, "packs/apples/app/public/apples.rb", rule).offenses == ()
