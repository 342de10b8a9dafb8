"""
Missing return rule.

Detects functions that look like they compute a value but never return it.
Function bodies are segmented by indentation only:

- a ``def name(...)`` line at indentation I opens a function
- the first non-blank body line fixes ``body_indent``
- lines indented at least ``body_indent`` (and blank lines) belong to the body
- the first non-blank line indented at most I closes the function

Known limitations: a nested ``def`` closes the enclosing function, ``async def``
is not segmented, and lines indented between I and ``body_indent`` are dropped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional

from ..models.linting import LintContext, LintError, LintSeverity
from .base import BaseRule
from .text_utils import indent_width, split_lines

_DECORATOR_RE = re.compile(r"^(\s*)@([a-zA-Z_][a-zA-Z0-9_.]*)\s*")
_FUNCTION_RE = re.compile(r"^(\s*)def\s+([a-zA-Z_][a-zA-Z0-9_]*)\s*\(([^)]*)\)")
_RETURN_RE = re.compile(r"^\s*return(\s|$)")

COMPUTATION_PATTERNS = [
    re.compile(pattern)
    for pattern in (
        r"result\s*=",
        r"total\s*=",
        r"sum\s*=",
        r"count\s*=",
        r"output\s*=",
        r"value\s*=",
        r"answer\s*=",
        r"res\s*=",
        r"ret\s*=",
        r"data\s*=",
        r"\+=|-=|\*=|/=",
    )
]

VALUE_RETURNING_PREFIXES = (
    "get_",
    "calculate_",
    "compute_",
    "find_",
    "create_",
    "build_",
    "make_",
    "generate_",
    "parse_",
    "convert_",
    "transform_",
    "extract_",
    "fetch_",
    "load_",
    "read_",
)

SPECIAL_METHODS = frozenset({
    "__init__",
    "__del__",
    "__setattr__",
    "__delattr__",
    "__setitem__",
    "__delitem__",
    "__enter__",
    "__exit__",
    "setUp",
    "tearDown",
    "setUpClass",
    "tearDownClass",
    "setup",
    "teardown",
    "main",
})


@dataclass
class FunctionInfo:
    name: str
    start_line: int
    end_line: int
    indent: int
    params: str = ""
    body: str = ""
    decorators: List[str] = field(default_factory=list)
    body_indent: Optional[int] = None
    has_return: bool = False


def extract_decorator(line: str) -> Optional[str]:
    match = _DECORATOR_RE.match(line)
    return match.group(2) if match else None


def check_has_return(body: str) -> bool:
    for line in body.split("\n"):
        if line.strip().startswith("#"):
            continue
        if _RETURN_RE.match(line):
            return True
    return False


def extract_functions(code: str) -> List[FunctionInfo]:
    """Segment ``code`` into functions using indentation alone."""
    functions: List[FunctionInfo] = []
    current: Optional[FunctionInfo] = None
    pending_decorators: List[str] = []

    def close(func: FunctionInfo) -> None:
        func.has_return = check_has_return(func.body)
        functions.append(func)

    for line_index, line in enumerate(split_lines(code)):
        line_num = line_index + 1

        decorator = extract_decorator(line)
        if decorator and current is None:
            pending_decorators.append(decorator)
            continue

        match = _FUNCTION_RE.match(line)
        if match:
            if current is not None:
                current.end_line = line_num - 1
                close(current)
            current = FunctionInfo(
                name=match.group(2),
                start_line=line_num,
                end_line=line_num,
                indent=len(match.group(1)),
                params=match.group(3),
                decorators=list(pending_decorators),
            )
            pending_decorators = []
            continue

        if current is None:
            continue

        if line.strip() == "":
            current.body += line + "\n"
            continue

        line_indent = indent_width(line)

        if current.body_indent is None and line_indent > current.indent:
            current.body_indent = line_indent

        if current.body_indent is not None and line_indent >= current.body_indent:
            current.body += line + "\n"
            current.end_line = line_num
        elif line_indent <= current.indent:
            close(current)
            current = None
            # the closing line may itself decorate the next function
            decorator = extract_decorator(line)
            if decorator:
                pending_decorators.append(decorator)

    if current is not None:
        close(current)

    return functions


def looks_non_void(func: FunctionInfo) -> bool:
    """True when the body or the name suggests the function produces a value."""
    if any(pattern.search(func.body) for pattern in COMPUTATION_PATTERNS):
        return True
    return func.name.startswith(VALUE_RETURNING_PREFIXES)


def is_property_setter(decorators: List[str]) -> bool:
    return any(decorator.endswith(".setter") for decorator in decorators)


def is_special_method(name: str, decorators: Optional[List[str]] = None) -> bool:
    return name in SPECIAL_METHODS or is_property_setter(decorators or [])


class MissingReturnRule(BaseRule):
    """Detects functions that appear to be non-void but have no return statement."""

    rule_id = "missing-return"
    description = "Detect functions that might need a return statement"

    def run(self, code: str, line_offset: int = 0, context: Optional[LintContext] = None) -> List[LintError]:
        errors = []
        for func in extract_functions(code):
            if is_special_method(func.name, func.decorators):
                continue
            if not func.has_return and looks_non_void(func):
                errors.append(
                    self.create_error(
                        line=func.start_line + line_offset,
                        message=f"Function '{func.name}' appears to compute a value but has no return statement",
                        severity=LintSeverity.WARNING,
                    )
                )
        return errors
