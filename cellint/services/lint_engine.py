"""
Lint engine.

Runs the registered rules over one cell or over an ordered list of cells. A
notebook pass treats all cells as one line-addressed stream: each cell's
errors are shifted by the number of lines in the cells before it, and the
names each cell defines are merged into a context that later cells see.

Design intent:
- One rule failing never aborts a cell or a pass; the failure is logged and
  the rule contributes nothing for that cell.
- Rule results are normalized in exactly one place (``normalize_result``).
- What a rule receives is decided by its declared capabilities, never by its id.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Union

from ..models.linting import (
    ErrorStats,
    ErrorsOnly,
    ErrorsWithNames,
    LintCellResult,
    LintContext,
    LintError,
    NotebookCell,
    NotebookError,
)
from ..rules import LintRule, create_default_rules
from ..rules.text_utils import is_skipped_cell, line_count
from . import result_aggregator

logger = logging.getLogger(__name__)

CellInput = Union[NotebookCell, Mapping]


class MalformedRuleResult(TypeError):
    """A rule returned something other than a list or a rule result."""


def normalize_result(result: Any) -> ErrorsWithNames:
    """
    Resolve the accepted rule result shapes into one.

    - list / tuple of errors (legacy shape, no new names)
    - ErrorsOnly
    - ErrorsWithNames
    - mapping with "errors" and optionally "defined_names" / "definedNames"
    """
    if isinstance(result, ErrorsWithNames):
        return result
    if isinstance(result, ErrorsOnly):
        return ErrorsWithNames(errors=list(result.errors))
    if isinstance(result, (list, tuple)):
        return ErrorsWithNames(errors=list(result))
    if isinstance(result, Mapping) and "errors" in result:
        names = result.get("defined_names", result.get("definedNames")) or ()
        return ErrorsWithNames(errors=list(result["errors"] or []), defined_names=frozenset(names))
    raise MalformedRuleResult(f"unsupported rule result type: {type(result).__name__}")


def _coerce_error(error: Any) -> LintError:
    if isinstance(error, LintError):
        return error
    if isinstance(error, Mapping):
        return LintError.model_validate(error)
    raise MalformedRuleResult(f"unsupported error type: {type(error).__name__}")


def coerce_cell(cell: CellInput, position: int) -> NotebookCell:
    """Accept a NotebookCell or a mapping; a missing cell index becomes ``position``."""
    if isinstance(cell, Mapping):
        data = dict(cell)
        if "cell_index" in data:
            data.setdefault("cellIndex", data.pop("cell_index"))
        cell = NotebookCell.model_validate(data)
    elif not isinstance(cell, NotebookCell):
        raise TypeError(f"unsupported cell type: {type(cell).__name__}")

    if cell.cell_index is None:
        return cell.model_copy(update={"cell_index": position})
    return cell


class LintEngine:
    """Orchestrates the heuristic rules across cells."""

    def __init__(self, rules: Optional[Iterable[LintRule]] = None):
        self._rules: List[LintRule] = []
        for rule in create_default_rules() if rules is None else rules:
            self.register_rule(rule)

    def register_rule(self, rule: LintRule) -> None:
        """Append a rule; registration order is the per-cell reporting order."""
        if not getattr(rule, "rule_id", None):
            raise ValueError(f"Rule {rule!r} has no rule_id")
        self._rules.append(rule)
        logger.debug(f"Registered lint rule '{rule.rule_id}'")

    def get_rules(self) -> List[Dict[str, str]]:
        return [{"name": rule.rule_id} for rule in self._rules]

    def get_rule(self, rule_id: str) -> Optional[LintRule]:
        for rule in self._rules:
            if rule.rule_id == rule_id:
                return rule
        return None

    def lint_cell(
        self,
        code: str,
        line_offset: int = 0,
        cell_index: int = 0,
        context: Optional[LintContext] = None,
    ) -> LintCellResult:
        """
        Run every rule on one cell.

        Args:
            code: Python source of the cell
            line_offset: total line count of the preceding cells
            cell_index: caller's index for the cell (used in messages and logs)
            context: names defined by earlier cells; not modified

        Returns:
            LintCellResult with rule-tagged errors and the names this cell defines.
        """
        result = LintCellResult()
        if is_skipped_cell(code):
            return result

        names = context.defined_names if context is not None else set()

        for rule in self._rules:
            try:
                normalized = normalize_result(self._invoke(rule, code, line_offset, cell_index, names))
                errors = [
                    _coerce_error(error).model_copy(update={"rule_id": rule.rule_id})
                    for error in normalized.errors
                ]
            except Exception as e:
                logger.error(f"Error running rule '{rule.rule_id}' on cell {cell_index}: {e}")
                continue

            result.errors.extend(errors)
            result.new_context.update(normalized.defined_names)

        return result

    def _invoke(self, rule: LintRule, code: str, line_offset: int, cell_index: int, names: Set[str]) -> Any:
        kwargs: Dict[str, Any] = {}
        if getattr(rule, "needs_cell_index", False):
            kwargs["cell_index"] = cell_index

        if getattr(rule, "context_aware", False):
            # a private copy keeps the caller's context untouched
            rule_context = LintContext(defined_names=set(names))
        else:
            rule_context = None

        return rule.run(code, line_offset, rule_context, **kwargs)

    def lint_notebook(self, cells: Sequence[CellInput]) -> List[NotebookError]:
        """
        Lint all cells in order with cross-cell context.

        Names defined in cell i are visible to cells i+1..n, never the other way round.
        """
        self._reset_stateful_rules()

        all_errors: List[NotebookError] = []
        context = LintContext()
        line_offset = 0

        for position, raw_cell in enumerate(cells):
            cell = coerce_cell(raw_cell, position)
            cell_result = self.lint_cell(cell.code, line_offset, cell.cell_index, context)

            for error in cell_result.errors:
                all_errors.append(
                    NotebookError(
                        **error.model_dump(exclude={"cell_index"}),
                        cell_index=cell.cell_index,
                        cell_line=error.line - line_offset,
                        element=cell.element,
                    )
                )

            context.merge(cell_result.new_context)
            context.merge(self._backfill_defined_names(cell))

            line_offset += line_count(cell.code)

        logger.info(
            f"Linted {len(cells)} cells: {result_aggregator.summarize(all_errors)}"
        )
        return all_errors

    def _reset_stateful_rules(self) -> None:
        for rule in self._rules:
            if not getattr(rule, "stateful", False):
                continue
            try:
                rule.reset_context()
            except Exception as e:
                logger.error(f"Error resetting rule '{rule.rule_id}': {e}")

    def _backfill_defined_names(self, cell: NotebookCell) -> Set[str]:
        """Names from rules that can extract definitions directly from the cell source."""
        names: Set[str] = set()
        for rule in self._rules:
            if not getattr(rule, "provides_defined_names", False):
                continue
            try:
                names.update(rule.extract_defined_names_public(cell.code))
            except Exception as e:
                logger.error(f"Error extracting defined names with '{rule.rule_id}' on cell {cell.cell_index}: {e}")
        return names

    def lint_code(self, code: str, line_offset: int = 0) -> List[LintError]:
        """Lint a standalone snippet with an empty context."""
        return self.lint_cell(code, line_offset, 0, LintContext()).errors

    def filter_by_severity(self, errors, min_severity) -> list:
        return result_aggregator.filter_by_severity(errors, min_severity)

    def group_by_cell(self, errors) -> Dict[int, list]:
        return result_aggregator.group_by_cell(errors)

    def group_by_rule(self, errors) -> Dict[str, list]:
        return result_aggregator.group_by_rule(errors)

    def get_stats(self, errors) -> ErrorStats:
        return result_aggregator.get_stats(errors)
