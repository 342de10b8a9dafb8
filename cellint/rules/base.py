"""
Rule protocol and base class.

A rule is a single-responsibility heuristic analyzer for one cell. Besides
``run`` it declares its capabilities so the engine can decide what to pass in
and which optional hooks to call:

- ``context_aware``: receives a context holding the names defined by earlier cells
- ``needs_cell_index``: receives the raw cell index as the ``cell_index`` keyword
- ``stateful``: exposes ``reset_context()``, called at the start of a notebook pass
- ``provides_defined_names``: exposes ``extract_defined_names_public(code)``
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Protocol, Set, runtime_checkable

from ..models.linting import LintContext, LintError, LintSeverity, RuleResult


@runtime_checkable
class LintRule(Protocol):
    """Structural interface accepted by the engine."""

    rule_id: str

    def run(self, code: str, line_offset: int = 0, context: Optional[LintContext] = None) -> RuleResult:
        ...


class BaseRule(ABC):
    """Base class for all built-in lint rules."""

    rule_id: str = ""
    description: str = ""

    context_aware: bool = False
    needs_cell_index: bool = False
    stateful: bool = False
    provides_defined_names: bool = False

    @abstractmethod
    def run(self, code: str, line_offset: int = 0, context: Optional[LintContext] = None) -> RuleResult:
        """
        Analyze one cell.

        Args:
            code: Python source of the cell
            line_offset: number of lines in all preceding cells
            context: names defined by earlier cells (context-aware rules only)

        Returns:
            A list of errors, or an ErrorsOnly / ErrorsWithNames result.
        """

    def reset_context(self) -> None:
        """Drop any state carried across cells (stateful rules override this)."""

    def extract_defined_names_public(self, code: str) -> Set[str]:
        raise NotImplementedError(f"Rule '{self.rule_id}' does not extract defined names")

    def create_error(
        self,
        line: int,
        message: str,
        severity: LintSeverity,
        column: Optional[int] = None,
    ) -> LintError:
        """Build an error already tagged with this rule's id."""
        return LintError(
            line=line,
            column=column,
            message=message,
            severity=severity,
            rule_id=self.rule_id,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(rule_id={self.rule_id!r})"
