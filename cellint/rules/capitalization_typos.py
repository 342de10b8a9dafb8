"""
Capitalization typos rule.

Catches identifiers whose lowercase form matches a known name while the exact
casing differs, e.g. ``true`` for ``True`` or ``dataframe`` for ``DataFrame``.
The known names are a fixed vocabulary merged with the names the cell itself
defines (a local definition wins over the vocabulary for the same key).
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from ..models.linting import LintContext, LintError, LintSeverity
from .base import BaseRule
from .text_utils import IDENTIFIER_RE, blank_strings_and_comments, split_lines

# Typing names that are capitalized on purpose
EXCLUDED_NAMES = frozenset({
    "List",
    "Dict",
    "Set",
    "Tuple",
    "Optional",
    "Union",
    "Any",
    "Callable",
    "Sequence",
    "Iterable",
    "Mapping",
    "Type",
    "ClassVar",
    "Final",
    "Literal",
    "TypeVar",
    "Generic",
    "Protocol",
})

_CANONICAL_NAMES = (
    "True", "False", "None", "self", "cls",
    "numpy", "pandas", "matplotlib", "tensorflow", "pytorch", "sklearn", "scipy", "seaborn",
    "print", "len", "range", "list", "dict", "set", "tuple", "str", "int", "float", "bool", "type",
    "isinstance", "hasattr", "getattr", "setattr", "enumerate", "zip", "map", "filter", "sorted",
    "reversed", "sum", "min", "max", "abs", "round", "open",
    "read", "write", "close", "append", "extend", "insert", "remove", "pop", "index", "count",
    "sort", "reverse", "copy", "clear", "keys", "values", "items", "get", "update",
    "DataFrame", "Series", "array", "ndarray",
    "ValueError", "TypeError", "KeyError", "IndexError", "AttributeError", "ImportError",
    "RuntimeError", "Exception", "FileNotFoundError", "ZeroDivisionError", "AssertionError",
)

COMMON_NAMES: Dict[str, str] = {name.lower(): name for name in _CANONICAL_NAMES}

_DEF_RE = re.compile(r"^\s*def\s+([a-zA-Z_][a-zA-Z0-9_]*)\s*\(")
_CLASS_RE = re.compile(r"^\s*class\s+([a-zA-Z_][a-zA-Z0-9_]*)")
_ASSIGN_RE = re.compile(r"^\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*=(?!=)")
_CONTROL_FLOW_RE = re.compile(r"^\s*(if|while|for|with|except|elif)\b")


def build_defined_names_map(code: str) -> Dict[str, str]:
    """Lowercase key -> spelling for names defined by def, class or plain assignment."""
    defined: Dict[str, str] = {}
    for line in split_lines(code):
        for pattern in (_DEF_RE, _CLASS_RE):
            match = pattern.match(line)
            if match:
                defined[match.group(1).lower()] = match.group(1)

        match = _ASSIGN_RE.match(line)
        if match and not _CONTROL_FLOW_RE.match(line):
            defined[match.group(1).lower()] = match.group(1)
    return defined


class CapitalizationTyposRule(BaseRule):
    """Detects likely typos caused by wrong capitalization of known names."""

    rule_id = "capitalization-typos"
    description = "Detect true/false/none instead of True/False/None"

    def run(self, code: str, line_offset: int = 0, context: Optional[LintContext] = None) -> List[LintError]:
        known = dict(COMMON_NAMES)
        known.update(build_defined_names_map(code))

        errors = []
        for line_index, line in enumerate(blank_strings_and_comments(code)):
            for match in IDENTIFIER_RE.finditer(line):
                name = match.group(1)
                start = match.start()

                if start > 0 and line[start - 1] == ".":
                    continue
                if name in EXCLUDED_NAMES:
                    continue

                canonical = known.get(name.lower())
                if canonical is not None and name != canonical:
                    errors.append(
                        self.create_error(
                            line=line_index + 1 + line_offset,
                            column=start + 1,
                            message=f"Possible capitalization typo: '{name}' should be '{canonical}'",
                            severity=LintSeverity.WARNING,
                        )
                    )
        return errors
