from __future__ import annotations

from pathlib import Path

import pytest

from helpers import make_context, write_file, write_package_yml, write_yaml
from packguard.core.config import NAMESPACE_RULE, ROOT_NAMESPACE_RULE
from packguard.engine import Engine


@pytest.fixture
def packs(repo: Path) -> Path:
    write_package_yml(repo, "packs/apples")
    write_package_yml(repo, "packs/tools")
    write_package_yml(repo, "packs/fruits/apples")
    return repo


def _messages(repo: Path, path: str, source: str, rule: str = NAMESPACE_RULE, **overrides: object) -> list[str]:
    write_file(repo, path, source)
    overrides.setdefault("enabled_rules", [rule])
    result = Engine(make_context(repo, **overrides)).scan(paths=[path], rule_ids=[rule])
    return [offense.message for offense in result.offenses]


OPTED_IN = {"namespace_include_packs": ["packs/apples", "packs/fruits/apples"]}


@pytest.mark.parametrize(
    ("path", "source", "fqn", "expected_path"),
    [
        (
            "packs/apples/app/services/tool.rb",
            "class Tool\nend\n",
            "Tool",
            "packs/apples/app/services/apples/tool.rb",
        ),
        (
            "packs/apples/app/services/tools/blah.rb",
            "module Tools\n  class Blah\n  end\nend\n",
            "Tools::Blah",
            "packs/apples/app/services/apples/tools/blah.rb",
        ),
        (
            "packs/apples/app/models/concerns/tool.rb",
            "module Tool\nend\n",
            "Tool",
            "packs/apples/app/models/concerns/apples/tool.rb",
        ),
        (
            "packs/apples/app/services/tool_2.rb",
            "class Tool2\nend\n",
            "Tool2",
            "packs/apples/app/services/apples/tool_2.rb",
        ),
        (
            "packs/fruits/apples/app/services/tool.rb",
            "class Tool\nend\n",
            "Tool",
            "packs/fruits/apples/app/services/apples/tool.rb",
        ),
    ],
)
def test_opted_in_package_must_use_its_namespace(
    packs: Path, path: str, source: str, fqn: str, expected_path: str
) -> None:
    assert _messages(packs, path, source, **OPTED_IN) == [
        f"Based on the filepath, this file defines `{fqn}`, but it should be namespaced as "
        f"`Apples::{fqn}` with path `{expected_path}`."
    ]


@pytest.mark.parametrize(
    "path",
    [
        "packs/apples/app/services/apples.rb",
        "packs/apples/app/services/apples/tool.rb",
        "packs/apples/app/models/concerns/apples.rb",
        "packs/apples/spec/services/forestry/logging.rb",
        "packs/apples/lib/services/tools/blah.rb",
        "packs/fruits/apples/app/services/apples/tool.rb",
    ],
)
def test_conforming_or_unrecognized_files_pass(packs: Path, path: str) -> None:
    assert _messages(packs, path, "module Apples\nend\n", **OPTED_IN) == []


def test_globally_permitted_namespaces_are_allowed(packs: Path) -> None:
    overrides = {**OPTED_IN, "globally_permitted_namespaces": ["AppleTrees", "Ciders"]}
    assert _messages(packs, "packs/apples/app/services/apple_trees.rb", "class AppleTrees\nend\n", **overrides) == []
    assert _messages(packs, "packs/apples/app/services/ciders/tool.rb", "class Ciders::Tool\nend\n", **overrides) == []
    assert len(_messages(packs, "packs/apples/app/services/tool.rb", "class Tool\nend\n", **overrides)) == 1


def test_unenforced_package_tolerates_unreserved_namespace(packs: Path) -> None:
    assert _messages(packs, "packs/apples/app/services/tools/blah.rb", "class Tools::Blah\nend\n") == []


def test_namespace_reserved_by_another_package(packs: Path) -> None:
    messages = _messages(
        packs,
        "packs/apples/app/services/tools/blah.rb",
        "class Tools::Blah\nend\n",
        namespace_include_packs=["packs/tools"],
    )
    assert messages == [
        "Based on the filepath, this file defines `Tools::Blah`. `packs/tools` prevents other packs from "
        "sitting in the `Tools` namespace. This should be namespaced under `Apples` with path "
        "`packs/apples/app/services/apples/tools/blah.rb`."
    ]


def test_automatic_pack_namespace_is_exempt(packs: Path) -> None:
    write_package_yml(packs, "packs/apples", metadata={"automatic_pack_namespace": True})
    assert _messages(packs, "packs/apples/app/services/tool.rb", "class Tool\nend\n", **OPTED_IN) == []
    assert _messages(packs, "packs/apples/app/services/tool.rb", "class Tool\nend\n", rule=ROOT_NAMESPACE_RULE) == []


def test_offense_points_at_top_level_definition(packs: Path) -> None:
    write_file(packs, "packs/apples/app/services/tool.rb", "# frozen_string_literal: true\n\nclass Tool\nend\n")
    ctx = make_context(packs, enabled_rules=[NAMESPACE_RULE], **OPTED_IN)
    (offense,) = Engine(ctx).scan(paths=["packs/apples"]).offenses
    assert (offense.path, offense.line, offense.column) == ("packs/apples/app/services/tool.rb", 3, 0)


def test_root_namespace_rule_needs_no_opt_in(packs: Path) -> None:
    messages = _messages(packs, "packs/tools/app/services/hammer.rb", "class Hammer\nend\n", rule=ROOT_NAMESPACE_RULE)
    assert messages == [
        "Based on the filepath, this file defines `Hammer`, but it should be namespaced as `Tools::Hammer` "
        "with path `packs/tools/app/services/tools/hammer.rb`."
    ]


def test_rule_can_be_enabled_per_package(packs: Path) -> None:
    write_yaml(packs, "packs/tools/packguard.yml", {ROOT_NAMESPACE_RULE: {"Enabled": True}})
    write_file(packs, "packs/tools/app/services/hammer.rb", "class Hammer\nend\n")
    write_file(packs, "packs/apples/app/services/hammer.rb", "class Hammer\nend\n")
    result = Engine(make_context(packs)).scan(rule_ids=[ROOT_NAMESPACE_RULE])
    assert [offense.path for offense in result.offenses] == ["packs/tools/app/services/hammer.rb"]


def test_rule_can_be_disabled_per_package(packs: Path) -> None:
    write_yaml(packs, "packs/tools/packguard.yml", {ROOT_NAMESPACE_RULE: {"Enabled": False}})
    write_file(packs, "packs/tools/app/services/hammer.rb", "class Hammer\nend\n")
    write_file(packs, "packs/apples/app/services/hammer.rb", "class Hammer\nend\n")
    result = Engine(make_context(packs, enabled_rules=[ROOT_NAMESPACE_RULE])).scan(rule_ids=[ROOT_NAMESPACE_RULE])
    assert [offense.path for offense in result.offenses] == ["packs/apples/app/services/hammer.rb"]
