from __future__ import annotations

from .check import configure_check_parser, run_check_command
from .inspect import (
    configure_inspect_parsers,
    run_packages_command,
    run_resolve_command,
    run_rules_command,
)
from .todo import configure_todo_parser, run_todo_command

__all__ = [
    "configure_check_parser",
    "configure_inspect_parsers",
    "configure_todo_parser",
    "run_check_command",
    "run_packages_command",
    "run_resolve_command",
    "run_rules_command",
    "run_todo_command",
]
