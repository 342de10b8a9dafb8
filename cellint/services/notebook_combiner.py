"""
Whole-notebook ("combined") linting.

The cells are joined into one source so that rules which reason about a whole
file (duplicate definitions, import placement, bracket balance, ...) see the
notebook the way it would run top to bottom. Errors are mapped back to the
cell they fall in.

Rules that need a cross-cell context run per cell instead, with every name
defined anywhere in the notebook. Unlike the sequential pass, a name defined
in a later cell is therefore accepted in an earlier one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from ..models.linting import LintContext, LintError, NotebookCell, NotebookError
from ..rules import LintRule, create_default_rules
from ..rules.text_utils import is_skipped_cell, line_count
from . import result_aggregator
from .lint_engine import CellInput, LintEngine, coerce_cell

logger = logging.getLogger(__name__)


@dataclass
class CellSpan:
    """Lines occupied by one cell in the combined source (1-based, inclusive)."""

    cell_index: int
    start_line: int
    end_line: int
    # position of the cell in the input list
    position: int


@dataclass
class CombinedNotebook:
    source: str = ""
    spans: List[CellSpan] = field(default_factory=list)


def combine_notebook(cells: Sequence[CellInput]) -> CombinedNotebook:
    """
    Join the cells with newlines.

    Cell k starts at line ``1 + L0 + ... + L(k-1)`` where ``Li`` is the line count
    of cell i, the same coordinates the sequential pass uses. Magic and empty
    cells keep their line count but contribute only blank lines.
    """
    parts: List[str] = []
    spans: List[CellSpan] = []
    current_line = 1

    for position, raw_cell in enumerate(cells):
        cell = coerce_cell(raw_cell, position)
        count = line_count(cell.code)
        parts.append("\n" * (count - 1) if is_skipped_cell(cell.code) else cell.code)
        spans.append(CellSpan(cell.cell_index, current_line, current_line + count - 1, position))
        current_line += count

    return CombinedNotebook(source="\n".join(parts), spans=spans)


def map_line_to_cell(line: int, spans: Sequence[CellSpan]) -> Optional[Tuple[int, int]]:
    """Map a combined-source line to ``(cell_index, cell_line)``; None if out of range."""
    span = _find_span(line, spans)
    if span is None:
        return None
    return span.cell_index, line - span.start_line + 1


def _find_span(line: int, spans: Sequence[CellSpan]) -> Optional[CellSpan]:
    for span in spans:
        if span.start_line <= line <= span.end_line:
            return span
    return None


class CombinedNotebookLinter:
    """Lints a notebook as one file, keeping per-cell rules per cell."""

    def __init__(self, rules: Optional[Iterable[LintRule]] = None):
        rules = list(create_default_rules() if rules is None else rules)
        self.rules = rules

        per_cell = [rule for rule in rules if self._runs_per_cell(rule)]
        whole = [rule for rule in rules if not self._runs_per_cell(rule)]
        self._cell_engine = LintEngine(per_cell)
        self._whole_engine = LintEngine(whole)

    @staticmethod
    def _runs_per_cell(rule: LintRule) -> bool:
        return bool(getattr(rule, "context_aware", False) or getattr(rule, "needs_cell_index", False))

    def get_rules(self):
        return [{"name": rule.rule_id} for rule in self.rules]

    def lint_notebook(self, cells: Sequence[CellInput]) -> List[NotebookError]:
        if not cells:
            return []

        notebook_cells = [coerce_cell(cell, position) for position, cell in enumerate(cells)]
        combined = combine_notebook(notebook_cells)

        for rule in self.rules:
            if getattr(rule, "stateful", False):
                try:
                    rule.reset_context()
                except Exception as e:
                    logger.error(f"Error resetting rule '{rule.rule_id}': {e}")

        located: List[Tuple[int, NotebookError]] = []
        located.extend(self._lint_combined_source(combined, notebook_cells))
        located.extend(self._lint_each_cell(combined, notebook_cells))

        located.sort(key=lambda item: (item[0], item[1].line))
        errors = [error for _, error in located]
        logger.info(f"Combined lint of {len(notebook_cells)} cells: {result_aggregator.summarize(errors)}")
        return errors

    def _lint_combined_source(
        self, combined: CombinedNotebook, cells: List[NotebookCell]
    ) -> List[Tuple[int, NotebookError]]:
        located: List[Tuple[int, NotebookError]] = []
        result = self._whole_engine.lint_cell(combined.source, 0, 0, LintContext())

        for error in result.errors:
            span = _find_span(error.line, combined.spans)
            if span is None:
                logger.debug(f"Dropping error outside any cell: line {error.line}")
                continue
            located.append((span.position, self._to_notebook_error(error, span, cells[span.position])))
        return located

    def _lint_each_cell(
        self, combined: CombinedNotebook, cells: List[NotebookCell]
    ) -> List[Tuple[int, NotebookError]]:
        context = LintContext(defined_names=self._collect_defined_names(cells))
        located: List[Tuple[int, NotebookError]] = []

        for span, cell in zip(combined.spans, cells):
            line_offset = span.start_line - 1
            result = self._cell_engine.lint_cell(cell.code, line_offset, cell.cell_index, context)
            for error in result.errors:
                located.append((span.position, self._to_notebook_error(error, span, cell)))
        return located

    def _collect_defined_names(self, cells: List[NotebookCell]) -> Set[str]:
        """Names defined by any cell, magic cells included (``%%time`` bodies still run)."""
        names: Set[str] = set()
        for rule in self.rules:
            if not getattr(rule, "provides_defined_names", False):
                continue
            for cell in cells:
                try:
                    names.update(rule.extract_defined_names_public(cell.code))
                except Exception as e:
                    logger.error(f"Error extracting defined names with '{rule.rule_id}' on cell {cell.cell_index}: {e}")
        return names

    @staticmethod
    def _to_notebook_error(error: LintError, span: CellSpan, cell: NotebookCell) -> NotebookError:
        return NotebookError(
            **error.model_dump(exclude={"cell_index"}),
            cell_index=span.cell_index,
            cell_line=error.line - span.start_line + 1,
            element=cell.element,
        )
