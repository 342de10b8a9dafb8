"""Lint engines and the services built around them."""

from .lint_engine import LintEngine, MalformedRuleResult, coerce_cell, normalize_result
from .notebook_combiner import CellSpan, CombinedNotebook, CombinedNotebookLinter, combine_notebook, map_line_to_cell
from .ruff_engine import RuffEngine, RuffEngineError

__all__ = [
    "LintEngine",
    "MalformedRuleResult",
    "coerce_cell",
    "normalize_result",
    "CellSpan",
    "CombinedNotebook",
    "CombinedNotebookLinter",
    "combine_notebook",
    "map_line_to_cell",
    "RuffEngine",
    "RuffEngineError",
]
