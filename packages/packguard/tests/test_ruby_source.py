from __future__ import annotations

from packguard.nodes import (
    ClassDef,
    ConstantAssign,
    ConstRef,
    ModuleDef,
    SourceUnit,
    definition_segments,
    is_partial_reference,
    iter_leaf_definitions,
    top_level_definition,
)
from packguard.ruby_source import parse_source


def _names(unit: SourceUnit) -> list[str]:
    return [ref.name for ref in unit.references]


def test_scoped_chain_emits_every_prefix_with_next_token() -> None:
    unit = parse_source("Foo::Bar::Baz.call(1)\n")
    assert unit.references == (
        ConstRef("Foo", 1, 0, "Bar"),
        ConstRef("Foo::Bar", 1, 0, "Baz"),
        ConstRef("Foo::Bar::Baz", 1, 0, "call"),
    )
    assert [is_partial_reference(ref) for ref in unit.references] == [True, True, False]


def test_reference_at_end_of_line_has_no_next_token() -> None:
    unit = parse_source("class Apples\n  Tools\nend\n")
    assert unit.references == (ConstRef("Tools", 2, 2, None),)
    assert not is_partial_reference(unit.references[0])


def test_cbase_reference_keeps_leading_separator() -> None:
    unit = parse_source("x = ::Apples::Green.new\n")
    assert _names(unit) == ["::Apples", "::Apples::Green"]


def test_nested_definitions_and_superclass() -> None:
    source = """
module Apples
  class Green < Base::Fruit
    RIPE_AFTER = 3

    def ripe?
      if days > RIPE_AFTER
        true
      end
    end
  end
end
"""
    unit = parse_source(source)
    top = top_level_definition(unit)
    assert isinstance(top, ModuleDef)
    assert top.name == "Apples"
    assert top.line == 2
    (green,) = top.children
    assert isinstance(green, ClassDef)
    assert green.superclass == ConstRef("Base::Fruit", 3, 16, None)
    assert green.children == (ConstantAssign("RIPE_AFTER", 4, 4),)
    assert _names(unit) == ["Base", "Base::Fruit", "RIPE_AFTER"]


def test_literals_and_comments_are_skipped() -> None:
    source = '''# Tools is mentioned in a comment
name = "Tools::Hammer #{Apples}"
label = 'Pruners'
sym = :Ladder
re = /Shears/
list = %w[Rake Hoe]
text = <<~TEXT
  Bucket
TEXT
=begin
Wheelbarrow
=end
Real
__END__
Ignored
'''
    unit = parse_source(source)
    assert _names(unit) == ["Apples", "Real"]


def test_interpolated_code_is_tokenized() -> None:
    source = '''module Tools
  msg = "picked #{Apples::Green.new(size: "#{Pears}")} today"
  html = <<~HTML
    <p>#{Ladders.count}</p>
    #{Buckets}
  HTML
  plain = <<~'RAW'
    #{Hidden}
  RAW
  rx = /#{Rakes::PATTERN}/i
end
'''
    unit = parse_source(source)
    assert _names(unit) == ["Apples", "Apples::Green", "Pears", "Ladders", "Buckets", "Rakes", "Rakes::PATTERN"]
    assert unit.references[0] == ConstRef("Apples", 2, 18, "Green")
    assert unit.references[3] == ConstRef("Ladders", 4, 9, "count")
    (top,) = unit.definitions
    assert isinstance(top, ModuleDef)
    assert top.name == "Tools"


def test_modifier_conditionals_do_not_open_blocks() -> None:
    source = """
module Apples
  def self.pick
    return if basket.full?
    basket.items.each do |item|
      item.pick unless item.rotten?
    end
  end
  class Basket; end
end
"""
    unit = parse_source(source)
    top = top_level_definition(unit)
    assert isinstance(top, ModuleDef)
    assert [child.name for child in top.children] == ["Basket"]


def test_class_self_block_and_endless_def_balance() -> None:
    source = """
class Apples
  class << self
    def fresh = true
  end
  while ready do
    Tools
  end
end
Trailing
"""
    unit = parse_source(source)
    assert [d.name for d in unit.definitions] == ["Apples"]
    assert _names(unit) == ["Tools", "Trailing"]


def test_leaf_definitions_and_constant_segments() -> None:
    source = """
module Foo
  module Bar
  end

  BAZ_QUX = 1
end
"""
    unit = parse_source(source)
    leaves = [(leaf.name, [n.name for n in nesting]) for leaf, nesting in iter_leaf_definitions(unit)]
    assert leaves == [("Bar", ["Foo", "Bar"]), ("BAZ_QUX", ["Foo", "BAZ_QUX"])]
    assert definition_segments(ConstantAssign("BAZ_QUX", 1, 0)) == ["BazQux"]
    assert definition_segments(ClassDef("::Foo::Bar", 1, 0)) == ["Foo", "Bar"]


def test_hash_labels_are_not_references() -> None:
    unit = parse_source("call(Fruit: 1, kind: Apples)\n")
    assert _names(unit) == ["Apples"]
