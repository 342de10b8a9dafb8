"""Empty cells rule: cells with no executable content."""

from __future__ import annotations

from typing import List, Optional

from ..models.linting import LintContext, LintError, LintSeverity
from .base import BaseRule
from .text_utils import split_lines


class EmptyCellsRule(BaseRule):
    """
    Reports empty, comment-only, pass-only and ellipsis-only cells.

    Messages name the cell by its 1-based position, so the engine passes the
    raw cell index as ``cell_index``.
    """

    rule_id = "empty-cells"
    description = "Detect empty or comment-only cells"

    needs_cell_index = True

    def run(
        self,
        code: str,
        line_offset: int = 0,
        context: Optional[LintContext] = None,
        cell_index: int = 0,
    ) -> List[LintError]:
        errors = []
        label = f"Cell {cell_index + 1}"
        line = line_offset + 1

        if code.strip() == "":
            errors.append(self.create_error(line, f"{label} is empty", LintSeverity.INFO))
            return errors

        statements = [
            stripped
            for stripped in (raw.strip() for raw in split_lines(code))
            if stripped and not stripped.startswith("#")
        ]

        if not statements:
            errors.append(self.create_error(line, f"{label} contains only comments", LintSeverity.INFO))
        elif all(statement == "pass" for statement in statements):
            errors.append(self.create_error(line, f"{label} contains only 'pass' statements", LintSeverity.INFO))
        elif all(statement == "..." for statement in statements):
            errors.append(self.create_error(line, f"{label} contains only ellipsis (...)", LintSeverity.INFO))

        return errors
