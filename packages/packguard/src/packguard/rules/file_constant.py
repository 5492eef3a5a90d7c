from __future__ import annotations

from ..core.config import FILE_CONSTANT_RULE
from ..nodes import ClassDef, Definition, ModuleDef, definition_segments, iter_leaf_definitions
from .base import Rule, Scan, SourceFile

CONSTANT_MESSAGE = "Constant name does not match filename."
CLASS_MESSAGE = "Class name does not match filename."
MODULE_MESSAGE = "Module name does not match filename."
INCOMPATIBLE_MESSAGE = "Constant names are mutually incompatible with file path."


def anchors(constants: list[str], path_segments: list[str]) -> set[int]:
    """Lengths `i` for which the first `i` constants equal the last `i` path segments.

    For constants `["Foo", "Bar"]` and segments `["App", "Foo", "Bar"]` the
    result is `{2}`.
    """
    found: set[int] = set()
    for i in range(1, min(len(constants), len(path_segments)) + 1):
        if path_segments[-i:] == constants[:i]:
            found.add(i)
    return found


def _mismatch_message(node: Definition) -> str:
    if isinstance(node, ClassDef):
        return CLASS_MESSAGE
    if isinstance(node, ModuleDef):
        return MODULE_MESSAGE
    return CONSTANT_MESSAGE


class FileMatchesConstantRule(Rule):
    rule_id = FILE_CONSTANT_RULE
    description = "every constant defined in a file must be loadable from that file's path"

    def on_file(self, scan: Scan, file: SourceFile) -> None:
        extension = scan.ctx.config.extension
        stem = str(file.path)[: -len(extension)] if str(file.path).endswith(extension) else str(file.path)
        convention = scan.ctx.convention
        path_segments = [convention.camelize(part) for part in stem.split("/")]
        common: set[int] | None = None
        for leaf, nesting in iter_leaf_definitions(file.unit):
            constants = [segment for node in nesting for segment in definition_segments(node)]
            found = anchors(constants, path_segments)
            if not found:
                scan.report(self, file, _mismatch_message(leaf), line=leaf.line, column=leaf.column)
                continue
            common = found if common is None else common & found
            if not common:
                scan.report(self, file, INCOMPATIBLE_MESSAGE, line=leaf.line, column=leaf.column)
