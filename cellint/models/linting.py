"""
Linting models (static quality feedback).

These models are part of the surface between the lint engines and their callers
(HTTP API, CLI, notebook UIs). The JSON record shape is kept small and stable:

    {"line": 3, "column": 5, "msg": "...", "severity": "error", "rule": "...", "cellIndex": 1}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field


class LintSeverity(str, Enum):
    """Severity level for lint findings."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class LintError(BaseModel):
    """A single lint issue detected in a cell's code."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Absolute, 1-based line (cell-local line + the cell's line offset)
    line: int
    # 1-based column when the rule can locate the token
    column: Optional[int] = None

    message: str = Field(alias="msg")
    severity: LintSeverity

    # Id of the rule that produced the issue (e.g. "undefined-variables" or a ruff code like F821)
    rule_id: Optional[str] = Field(default=None, alias="rule")
    cell_index: Optional[int] = Field(default=None, alias="cellIndex")

    def to_record(self) -> Dict[str, Any]:
        """JSON-like record using the public field names (msg, rule, cellIndex)."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class NotebookError(LintError):
    """A lint issue located inside a notebook pass."""

    cell_index: int = Field(alias="cellIndex")
    cell_line: int = Field(alias="cellLine")

    # Opaque handle owned by the caller (e.g. a UI element). Never inspected here.
    element: Any = Field(default=None, exclude=True, repr=False)


class NotebookCell(BaseModel):
    """One code cell of a notebook, in processing order."""

    model_config = ConfigDict(populate_by_name=True)

    code: str
    # None means "the cell's position in the pass"
    cell_index: Optional[int] = Field(default=None, alias="cellIndex")
    element: Any = Field(default=None, exclude=True, repr=False)


class ErrorStats(BaseModel):
    """Summary counts over a list of lint errors."""

    total: int = 0
    by_rule: Dict[str, int] = Field(default_factory=dict)
    by_severity: Dict[str, int] = Field(
        default_factory=lambda: {severity.value: 0 for severity in LintSeverity}
    )


@dataclass
class LintContext:
    """
    Names known to be defined by the cells processed so far in a notebook pass.

    A context only grows during a pass; a new pass starts from a new instance.
    """

    defined_names: Set[str] = field(default_factory=set)

    def merge(self, names: Iterable[str]) -> None:
        self.defined_names.update(names)

    def copy(self) -> "LintContext":
        return LintContext(defined_names=set(self.defined_names))

    def __contains__(self, name: object) -> bool:
        return name in self.defined_names


@dataclass(frozen=True)
class ErrorsOnly:
    """Rule result carrying only errors."""

    errors: List[LintError] = field(default_factory=list)


@dataclass(frozen=True)
class ErrorsWithNames:
    """Rule result carrying errors plus the names the cell defines."""

    errors: List[LintError] = field(default_factory=list)
    defined_names: FrozenSet[str] = frozenset()


# A plain list is the legacy shape and means "no new names"
RuleResult = Union[List[LintError], ErrorsOnly, ErrorsWithNames]


@dataclass
class LintCellResult:
    """Output of linting one cell: tagged errors plus newly defined names."""

    errors: List[LintError] = field(default_factory=list)
    new_context: Set[str] = field(default_factory=set)
