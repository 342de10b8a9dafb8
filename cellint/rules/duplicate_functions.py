"""Duplicate definitions rule: the same function or class name defined twice in a cell."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..models.linting import LintContext, LintError, LintSeverity
from .base import BaseRule
from .text_utils import split_lines

_DEFINITION_PATTERNS = (
    ("function", re.compile(r"^\s*def\s+([a-zA-Z_][a-zA-Z0-9_]*)\s*\(")),
    ("class", re.compile(r"^\s*class\s+([a-zA-Z_][a-zA-Z0-9_]*)\s*[\(:]")),
    ("async function", re.compile(r"^\s*async\s+def\s+([a-zA-Z_][a-zA-Z0-9_]*)\s*\(")),
)


@dataclass(frozen=True)
class Definition:
    name: str
    line: int
    kind: str


def extract_definitions(code: str) -> List[Definition]:
    definitions = []
    for line_index, line in enumerate(split_lines(code)):
        for kind, pattern in _DEFINITION_PATTERNS:
            match = pattern.match(line)
            if match:
                definitions.append(Definition(match.group(1), line_index + 1, kind))
    return definitions


class DuplicateFunctionsRule(BaseRule):
    """Detects functions and classes defined more than once in the same cell."""

    rule_id = "duplicate-functions"
    description = "Detect duplicate function definitions"

    def run(self, code: str, line_offset: int = 0, context: Optional[LintContext] = None) -> List[LintError]:
        by_name: Dict[str, List[Definition]] = {}
        for definition in extract_definitions(code):
            by_name.setdefault(definition.name, []).append(definition)

        errors = []
        for name, definitions in by_name.items():
            first = definitions[0]
            for duplicate in definitions[1:]:
                errors.append(
                    self.create_error(
                        line=duplicate.line + line_offset,
                        message=(
                            f"Duplicate {duplicate.kind} name '{name}' "
                            f"(first defined at line {first.line + line_offset})"
                        ),
                        severity=LintSeverity.WARNING,
                    )
                )
        return errors
