"""The node kinds the rule engine looks at.

A source adapter turns a concrete parse of a file into these records; rules
never inspect a parser's own node objects.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Union

_SCREAMING_CASE = re.compile(r"\A[A-Z_][A-Z0-9_]*\Z")


@dataclass(frozen=True)
class ConstRef:
    """A scoped identifier reference such as `Foo::Bar`.

    `next_token` is the token right after the reference (after a `.` or `::`
    separator). For `Foo::Bar.baz` the adapter emits `Foo` with next token
    `Bar` and `Foo::Bar` with next token `baz`.
    """

    name: str
    line: int
    column: int
    next_token: str | None = None


@dataclass(frozen=True)
class ConstantAssign:
    name: str
    line: int
    column: int


@dataclass(frozen=True)
class ModuleDef:
    name: str
    line: int
    column: int
    children: tuple["Definition", ...] = ()


@dataclass(frozen=True)
class ClassDef:
    name: str
    line: int
    column: int
    superclass: ConstRef | None = None
    children: tuple["Definition", ...] = ()


Definition = Union[ModuleDef, ClassDef, ConstantAssign]


@dataclass(frozen=True)
class SourceUnit:
    definitions: tuple[Definition, ...] = ()
    references: tuple[ConstRef, ...] = ()


def is_partial_reference(ref: ConstRef) -> bool:
    """True when `ref` is only a prefix of a longer scoped identifier."""
    token = ref.next_token
    return bool(token) and token[0].isupper()


def top_level_definition(unit: SourceUnit) -> Definition | None:
    return unit.definitions[0] if unit.definitions else None


def definition_segments(node: Definition) -> list[str]:
    if isinstance(node, ConstantAssign):
        name = node.name
        if _SCREAMING_CASE.match(name):
            name = "".join(part.capitalize() for part in name.split("_"))
        return [name]
    return [part for part in node.name.lstrip(":").split("::") if part]


def iter_leaf_definitions(unit: SourceUnit) -> Iterator[tuple[Definition, tuple[Definition, ...]]]:
    """Yield every definition without nested definitions, with its nesting (outermost first)."""

    def _walk(node: Definition, nesting: tuple[Definition, ...]) -> Iterator[tuple[Definition, tuple[Definition, ...]]]:
        nesting = (*nesting, node)
        children = () if isinstance(node, ConstantAssign) else node.children
        if not children:
            yield node, nesting
            return
        for child in children:
            yield from _walk(child, nesting)

    for definition in unit.definitions:
        yield from _walk(definition, ())
