"""Data models for the notebook linter."""

from .linting import (
    ErrorStats,
    ErrorsOnly,
    ErrorsWithNames,
    LintCellResult,
    LintContext,
    LintError,
    LintSeverity,
    NotebookCell,
    NotebookError,
    RuleResult,
)

__all__ = [
    "ErrorStats",
    "ErrorsOnly",
    "ErrorsWithNames",
    "LintCellResult",
    "LintContext",
    "LintError",
    "LintSeverity",
    "NotebookCell",
    "NotebookError",
    "RuleResult",
]
