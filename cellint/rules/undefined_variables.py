"""
Undefined variables rule.

Flags identifier uses that are not builtins, not defined in the cell and not
defined by an earlier cell of the notebook pass. The rule is context-aware: it
reads ``context.defined_names`` and returns the names the cell defines so the
engine can extend the context for the cells that follow.
"""

from __future__ import annotations

import builtins
import keyword
import re
from typing import Iterable, List, NamedTuple, Optional, Set

from ..models.linting import ErrorsWithNames, LintContext, LintSeverity
from .base import BaseRule
from .text_utils import (
    IDENTIFIER_RE,
    NAME_RE,
    blank_strings_and_comments,
    is_tooling_line,
    split_lines,
)

PYTHON_BUILTINS = frozenset(dir(builtins)) | {
    "__file__",
    "__cached__",
    "__annotations__",
    "__builtins__",
}

# Aliases that notebook environments (Kaggle, Colab) commonly preload
COMMON_LIBRARIES = frozenset({
    "pd", "np", "plt", "sns", "tf", "torch", "sklearn", "scipy", "cv2", "PIL",
    "os", "sys", "re", "json", "csv", "math", "random", "datetime", "time",
    "collections", "itertools", "functools", "pathlib", "glob", "shutil",
    "pickle", "warnings", "logging", "tqdm", "requests", "bs4", "selenium",
    "keras", "xgboost", "lightgbm", "catboost", "gc", "copy", "io", "struct",
    "typing", "subprocess", "threading", "multiprocessing", "queue", "asyncio",
})

IMPLICIT_NAMES = frozenset({"self", "cls", "display", "get_ipython"})

PYTHON_KEYWORDS = frozenset(keyword.kwlist)

_NAMES = r"\*?[A-Za-z_]\w*(?:\s*,\s*\*?[A-Za-z_]\w*)*"

_DEF_RE = re.compile(r"^\s*(?:async\s+)?def\s+([A-Za-z_]\w*)\s*\(([^)]*)")
_CLASS_RE = re.compile(r"^\s*class\s+([A-Za-z_]\w*)")
_ASSIGN_RE = re.compile(rf"^\s*({_NAMES})\s*,?\s*=(?!=)")
_BRACKET_ASSIGN_RE = re.compile(rf"^\s*[\(\[]\s*({_NAMES})\s*,?\s*[\)\]]\s*=(?!=)")
_ANNOTATED_RE = re.compile(r"^\s*([A-Za-z_]\w*)\s*:(?!=)\s*[^\s=]")
_WALRUS_RE = re.compile(r"\b([A-Za-z_]\w*)\s*:=")
_FOR_RE = re.compile(rf"\bfor\s+\(?\s*({_NAMES})\s*\)?\s+in\b")
_WITH_RE = re.compile(r"^\s*(?:async\s+)?with\b")
_AS_RE = re.compile(r"\bas\s+([A-Za-z_]\w*)")
_EXCEPT_AS_RE = re.compile(r"^\s*except\b.*\bas\s+([A-Za-z_]\w*)")
_IMPORT_RE = re.compile(r"^\s*import\s+(.+)")
_IMPORT_ITEM_RE = re.compile(r"\s*([A-Za-z_][\w.]*)(?:\s+as\s+([A-Za-z_]\w*))?")
_FROM_IMPORT_RE = re.compile(r"^\s*from\s+\S+\s+import\s+(.*)")
_FROM_ALIAS_RE = re.compile(r"(\S+)\s+as\s+(\S+)")
_LAMBDA_RE = re.compile(r"\blambda\s+([^:]+):")
_CONTROL_FLOW_RE = re.compile(r"^\s*(if|while|for|with|except|elif)\b")
_IMPORT_LINE_RE = re.compile(r"^\s*(import|from)\s+")
_KWARG_RE = re.compile(r"^\s*=(?!=)")


class UsedName(NamedTuple):
    name: str
    line: int
    column: int


def _split_names(group: str) -> Iterable[str]:
    for raw in group.split(","):
        name = raw.strip().lstrip("*").strip()
        if NAME_RE.match(name):
            yield name


def _param_names(params: str) -> Iterable[str]:
    for param in params.split(","):
        name = param.split("=")[0].split(":")[0].strip().lstrip("*").strip()
        if NAME_RE.match(name):
            yield name


def _from_import_names(text: str) -> Iterable[str]:
    for item in text.replace("(", " ").replace(")", " ").split(","):
        item = item.strip()
        if not item:
            continue
        alias = _FROM_ALIAS_RE.match(item)
        name = alias.group(2) if alias else item.split()[0]
        if name != "*" and NAME_RE.match(name):
            yield name


class UndefinedVariablesRule(BaseRule):
    """Detects usage of names that were never defined."""

    rule_id = "undefined-variables"
    description = "Detect usage of undefined variables"

    context_aware = True
    stateful = True
    provides_defined_names = True

    def __init__(self) -> None:
        # Names this rule has reported as defined during the current notebook pass
        self._accumulated_context: Set[str] = set()

    def should_skip_cell(self, code: str) -> bool:
        """True when the first non-blank line is a cell magic such as %%capture."""
        for line in split_lines(code):
            stripped = line.strip()
            if not stripped:
                continue
            return stripped.startswith("%%")
        return False

    def extract_defined_names(self, code: str) -> Set[str]:
        """Names bound anywhere in ``code`` (module level or nested)."""
        defined: Set[str] = set()
        in_from_import = False

        for line in blank_strings_and_comments(code):
            if is_tooling_line(line):
                continue

            if in_from_import:
                defined.update(_from_import_names(line))
                if ")" in line:
                    in_from_import = False
                continue

            match = _DEF_RE.match(line)
            if match:
                defined.add(match.group(1))
                defined.update(
                    name for name in _param_names(match.group(2)) if name not in ("self", "cls")
                )

            match = _CLASS_RE.match(line)
            if match:
                defined.add(match.group(1))

            if not _CONTROL_FLOW_RE.match(line):
                # chained assignments: a = b = 0
                rest = line
                match = _ASSIGN_RE.match(rest) or _BRACKET_ASSIGN_RE.match(rest)
                while match:
                    defined.update(_split_names(match.group(1)))
                    rest = rest[match.end():]
                    match = _ASSIGN_RE.match(rest) or _BRACKET_ASSIGN_RE.match(rest)

                match = _ANNOTATED_RE.match(line)
                if match and match.group(1) not in PYTHON_KEYWORDS:
                    defined.add(match.group(1))

            for match in _WALRUS_RE.finditer(line):
                defined.add(match.group(1))

            for match in _FOR_RE.finditer(line):
                defined.update(_split_names(match.group(1)))

            if _WITH_RE.match(line):
                for match in _AS_RE.finditer(line):
                    defined.add(match.group(1))

            match = _EXCEPT_AS_RE.match(line)
            if match:
                defined.add(match.group(1))

            match = _IMPORT_RE.match(line)
            if match:
                for item in match.group(1).split(","):
                    item_match = _IMPORT_ITEM_RE.match(item)
                    if item_match:
                        defined.add(item_match.group(2) or item_match.group(1).split(".")[0])

            match = _FROM_IMPORT_RE.match(line)
            if match:
                imported = match.group(1)
                defined.update(_from_import_names(imported))
                if imported.strip().startswith("(") and ")" not in imported:
                    in_from_import = True

            for match in _LAMBDA_RE.finditer(line):
                defined.update(_param_names(match.group(1)))

        return defined

    def extract_used_names(self, code: str) -> List[UsedName]:
        """Identifier uses with their cell-local line and 1-based column."""
        used: List[UsedName] = []
        in_from_import = False
        paren_depth = 0

        for line_index, line in enumerate(blank_strings_and_comments(code)):
            if in_from_import:
                if ")" in line:
                    in_from_import = False
                continue

            if not line.strip() or is_tooling_line(line):
                continue

            if _IMPORT_LINE_RE.match(line):
                match = _FROM_IMPORT_RE.match(line)
                if match and match.group(1).strip().startswith("(") and ")" not in match.group(1):
                    in_from_import = True
                continue

            for match in IDENTIFIER_RE.finditer(line):
                name = match.group(1)
                start = match.start()

                if start > 0 and line[start - 1] == ".":
                    continue

                # keyword argument: name= inside an open call, possibly spanning lines
                if _KWARG_RE.match(line[match.end():]):
                    before = line[:start]
                    if paren_depth + before.count("(") - before.count(")") > 0:
                        continue

                if name in PYTHON_KEYWORDS:
                    continue

                used.append(UsedName(name, line_index + 1, start + 1))

            paren_depth = max(0, paren_depth + line.count("(") - line.count(")"))

        return used

    def run(self, code: str, line_offset: int = 0, context: Optional[LintContext] = None) -> ErrorsWithNames:
        if self.should_skip_cell(code):
            return ErrorsWithNames(errors=[], defined_names=frozenset())

        defined = self.extract_defined_names(code)
        previous = context.defined_names if context is not None else set()

        known = PYTHON_BUILTINS | COMMON_LIBRARIES | IMPLICIT_NAMES | defined | previous

        errors = []
        reported = set()
        for used in self.extract_used_names(code):
            key = (used.name, used.line)
            if used.name in known or key in reported:
                continue
            reported.add(key)
            errors.append(
                self.create_error(
                    line=used.line + line_offset,
                    column=used.column,
                    message=f"Undefined variable '{used.name}'",
                    severity=LintSeverity.ERROR,
                )
            )

        self._accumulated_context.update(defined)
        return ErrorsWithNames(errors=errors, defined_names=frozenset(defined))

    def reset_context(self) -> None:
        self._accumulated_context = set()

    def get_accumulated_context(self) -> Set[str]:
        return set(self._accumulated_context)

    def add_to_context(self, names: Iterable[str]) -> None:
        self._accumulated_context.update(names)

    def extract_defined_names_public(self, code: str) -> Set[str]:
        return self.extract_defined_names(code)
