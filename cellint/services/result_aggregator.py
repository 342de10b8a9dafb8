"""
Result aggregation: severity filtering, grouping and summary statistics.

The helpers accept any error object exposing ``severity``, ``rule_id`` and
(for grouping by cell) ``cell_index`` attributes, so the heuristic engine and
the ruff adapter share them.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence, TypeVar

from ..models.linting import ErrorStats, LintSeverity

SEVERITY_ORDER: Dict[str, int] = {
    LintSeverity.ERROR.value: 3,
    LintSeverity.WARNING.value: 2,
    LintSeverity.INFO.value: 1,
}

UNKNOWN_RULE = "unknown"

E = TypeVar("E")


def severity_value(severity: Any) -> str:
    """Plain string for an enum member or a raw string."""
    return getattr(severity, "value", severity)


def severity_level(severity: Any) -> int:
    """error=3, warning=2, info=1; anything else is 0."""
    return SEVERITY_ORDER.get(severity_value(severity), 0)


def filter_by_severity(errors: Sequence[E], min_severity: Any) -> List[E]:
    """Keep errors at or above ``min_severity``."""
    min_level = severity_level(min_severity)
    return [error for error in errors if severity_level(error.severity) >= min_level]


def group_by_cell(errors: Sequence[E]) -> Dict[int, List[E]]:
    grouped: Dict[int, List[E]] = {}
    for error in errors:
        grouped.setdefault(error.cell_index, []).append(error)
    return grouped


def group_by_rule(errors: Sequence[E]) -> Dict[str, List[E]]:
    grouped: Dict[str, List[E]] = {}
    for error in errors:
        grouped.setdefault(error.rule_id or UNKNOWN_RULE, []).append(error)
    return grouped


def get_stats(errors: Sequence[Any]) -> ErrorStats:
    stats = ErrorStats(total=len(errors))
    for error in errors:
        severity = severity_value(error.severity)
        stats.by_severity[severity] = stats.by_severity.get(severity, 0) + 1
        rule = error.rule_id or UNKNOWN_RULE
        stats.by_rule[rule] = stats.by_rule.get(rule, 0) + 1
    return stats


def summarize(errors: Sequence[Any]) -> str:
    """One-line summary, e.g. '3 issues (1 error, 2 warnings, 0 info)'."""
    counts = get_stats(errors).by_severity
    total = len(errors)
    errors_word = "error" if counts["error"] == 1 else "errors"
    warnings_word = "warning" if counts["warning"] == 1 else "warnings"
    issues_word = "issue" if total == 1 else "issues"
    return (
        f"{total} {issues_word} ({counts['error']} {errors_word}, "
        f"{counts['warning']} {warnings_word}, {counts['info']} info)"
    )
