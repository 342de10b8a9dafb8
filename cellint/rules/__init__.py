"""
Rule registry.

``create_default_rules`` returns fresh instances in the default registration
order, which is also the order errors are reported in for a given cell.
"""

from typing import Dict, Iterable, List, Optional, Type

from .base import BaseRule, LintRule
from .capitalization_typos import CapitalizationTyposRule
from .duplicate_functions import DuplicateFunctionsRule
from .empty_cells import EmptyCellsRule
from .import_issues import ImportIssuesRule
from .indentation_errors import IndentationErrorsRule
from .missing_return import MissingReturnRule
from .redefined_variables import RedefinedVariablesRule
from .unclosed_brackets import UnclosedBracketsRule
from .undefined_variables import UndefinedVariablesRule

DEFAULT_RULE_CLASSES: List[Type[BaseRule]] = [
    UndefinedVariablesRule,
    CapitalizationTyposRule,
    DuplicateFunctionsRule,
    EmptyCellsRule,
    ImportIssuesRule,
    IndentationErrorsRule,
    MissingReturnRule,
    RedefinedVariablesRule,
    UnclosedBracketsRule,
]

RULES_BY_ID: Dict[str, Type[BaseRule]] = {rule_class.rule_id: rule_class for rule_class in DEFAULT_RULE_CLASSES}


def create_default_rules(enabled: Optional[Iterable[str]] = None) -> List[BaseRule]:
    """
    Instantiate the built-in rules.

    Args:
        enabled: rule ids to keep (None keeps all of them)
    """
    keep = set(enabled) if enabled is not None else None
    return [
        rule_class()
        for rule_class in DEFAULT_RULE_CLASSES
        if keep is None or rule_class.rule_id in keep
    ]


__all__ = [
    "BaseRule",
    "LintRule",
    "CapitalizationTyposRule",
    "DuplicateFunctionsRule",
    "EmptyCellsRule",
    "ImportIssuesRule",
    "IndentationErrorsRule",
    "MissingReturnRule",
    "RedefinedVariablesRule",
    "UnclosedBracketsRule",
    "UndefinedVariablesRule",
    "DEFAULT_RULE_CLASSES",
    "RULES_BY_ID",
    "create_default_rules",
]
