"""Redefined builtins rule: assignments and definitions that shadow built-in names."""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from ..models.linting import LintContext, LintError, LintSeverity
from .base import BaseRule
from .text_utils import split_lines

BUILTIN_NAMES = frozenset({
    "list", "dict", "set", "tuple", "str", "int", "float", "bool", "type", "object",
    "len", "range", "print", "input", "open", "file", "id", "hash", "map", "filter",
    "zip", "enumerate", "sorted", "reversed", "sum", "min", "max", "abs", "round",
    "all", "any", "format", "repr", "ascii", "chr", "ord", "bin", "oct", "hex",
    "iter", "next", "slice", "super", "classmethod", "staticmethod", "property",
    "getattr", "setattr", "hasattr", "delattr", "isinstance", "issubclass",
    "callable", "compile", "eval", "exec", "globals", "locals", "vars", "dir",
    "help", "memoryview", "bytearray", "bytes", "complex", "divmod", "pow", "frozenset",
})

_COMMENT_LINE_RE = re.compile(r"^\s*#")
_ASSIGN_RE = re.compile(r"^\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*=(?!=)")
_DEF_RE = re.compile(r"^\s*def\s+([a-zA-Z_][a-zA-Z0-9_]*)\s*\(")
_CLASS_RE = re.compile(r"^\s*class\s+([a-zA-Z_][a-zA-Z0-9_]*)")
_FOR_RE = re.compile(r"^\s*for\s+([a-zA-Z_][a-zA-Z0-9_]*)\s+in\s+")


class RedefinedVariablesRule(BaseRule):
    """Detects names that shadow built-ins or turn a variable into a function/class."""

    rule_id = "redefined-builtins"
    description = "Detect shadowing of built-in names"

    def run(self, code: str, line_offset: int = 0, context: Optional[LintContext] = None) -> List[LintError]:
        errors: List[LintError] = []
        # name -> local line of its first plain assignment
        assigned: Dict[str, int] = {}

        for line_index, line in enumerate(split_lines(code)):
            line_num = line_index + 1
            if _COMMENT_LINE_RE.match(line):
                continue

            match = _ASSIGN_RE.match(line)
            if match:
                name = match.group(1)
                if name in BUILTIN_NAMES:
                    errors.append(self._warn(line_num, line_offset, f"Redefining built-in name '{name}'"))
                assigned.setdefault(name, line_num)

            for kind, pattern in (("Function", _DEF_RE), ("Class", _CLASS_RE)):
                match = pattern.match(line)
                if not match:
                    continue
                name = match.group(1)
                if name in BUILTIN_NAMES:
                    errors.append(self._warn(line_num, line_offset, f"{kind} name '{name}' shadows built-in"))
                if name in assigned:
                    errors.append(
                        self._warn(
                            line_num,
                            line_offset,
                            f"{kind} '{name}' redefines variable (previously at line {assigned[name] + line_offset})",
                        )
                    )

            match = _FOR_RE.match(line)
            if match and match.group(1) in BUILTIN_NAMES:
                errors.append(self._warn(line_num, line_offset, f"Loop variable '{match.group(1)}' shadows built-in"))

        return errors

    def _warn(self, line_num: int, line_offset: int, message: str) -> LintError:
        return self.create_error(line_num + line_offset, message, LintSeverity.WARNING)
