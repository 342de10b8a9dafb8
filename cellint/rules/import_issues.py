"""
Import issues rule.

Reports imports placed after code, wildcard imports, names imported twice and
imported names never used in the cell. Shell escapes and magics are ignored.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Set

from ..models.linting import LintContext, LintError, LintSeverity
from .base import BaseRule
from .text_utils import IDENTIFIER_RE, NAME_RE, is_tooling_line, split_lines

_IMPORT_STATEMENT_RE = re.compile(r"^(import\s+|from\s+\S+\s+import\s+)")
_WILDCARD_RE = re.compile(r"^\s*from\s+\S+\s+import\s+\*")
_IMPORT_RE = re.compile(r"^\s*import\s+([a-zA-Z_][a-zA-Z0-9_.]*)(?:\s+as\s+([a-zA-Z_][a-zA-Z0-9_]*))?")
_FROM_IMPORT_RE = re.compile(r"^\s*from\s+\S+\s+import\s+(.+)")
_FROM_ALIAS_RE = re.compile(r"(\S+)\s+as\s+(\S+)")
_IMPORT_LINE_RE = re.compile(r"^\s*(import|from)\s+")


class ImportIssuesRule(BaseRule):
    """Detects problematic import patterns."""

    rule_id = "import-issues"
    description = "Detect wildcard and duplicate imports"

    def run(self, code: str, line_offset: int = 0, context: Optional[LintContext] = None) -> List[LintError]:
        lines = split_lines(code)
        errors: List[LintError] = []
        errors.extend(self._misplaced_imports(lines, line_offset))
        errors.extend(self._wildcard_imports(lines, line_offset))

        imported, duplicate_errors = self._imported_names(lines, line_offset)
        errors.extend(duplicate_errors)
        errors.extend(self._unused_imports(lines, imported, line_offset))
        return errors

    def _misplaced_imports(self, lines: List[str], line_offset: int) -> List[LintError]:
        import_lines: List[int] = []
        first_code_line = -1
        last_import_line = -1

        for line_index, line in enumerate(lines):
            stripped = line.strip()
            if not stripped or stripped.startswith("#") or is_tooling_line(line):
                continue
            if _IMPORT_STATEMENT_RE.match(stripped):
                import_lines.append(line_index + 1)
                last_import_line = line_index + 1
            elif first_code_line == -1:
                first_code_line = line_index + 1

        if first_code_line == -1 or last_import_line <= first_code_line:
            return []

        return [
            self.create_error(
                line_num + line_offset,
                "Import statement should be at the top of the file/cell",
                LintSeverity.INFO,
            )
            for line_num in import_lines
            if line_num > first_code_line
        ]

    def _wildcard_imports(self, lines: List[str], line_offset: int) -> List[LintError]:
        return [
            self.create_error(
                line_index + 1 + line_offset,
                "Wildcard import 'from X import *' is discouraged",
                LintSeverity.WARNING,
            )
            for line_index, line in enumerate(lines)
            if not is_tooling_line(line) and _WILDCARD_RE.match(line)
        ]

    def _imported_names(self, lines: List[str], line_offset: int):
        """Map of imported name -> first line, plus duplicate-import errors."""
        imported: Dict[str, int] = {}
        errors: List[LintError] = []

        def record(name: str, line_num: int) -> None:
            if name in imported:
                errors.append(
                    self.create_error(
                        line_num + line_offset,
                        f"Duplicate import of '{name}' (first imported at line {imported[name] + line_offset})",
                        LintSeverity.WARNING,
                    )
                )
            else:
                imported[name] = line_num

        for line_index, line in enumerate(lines):
            if is_tooling_line(line):
                continue

            match = _IMPORT_RE.match(line)
            if match:
                # "import matplotlib.pyplot as plt" -> plt, "import numpy" -> numpy
                record(match.group(2) or match.group(1).split(".")[0], line_index + 1)

            match = _FROM_IMPORT_RE.match(line)
            if match and not match.group(1).strip().startswith("*"):
                for item in match.group(1).replace("(", "").replace(")", "").split(","):
                    item = item.strip()
                    alias = _FROM_ALIAS_RE.match(item)
                    name = alias.group(2) if alias else item.split(" ")[0]
                    if NAME_RE.match(name):
                        record(name, line_index + 1)

        return imported, errors

    def _unused_imports(self, lines: List[str], imported: Dict[str, int], line_offset: int) -> List[LintError]:
        used: Set[str] = set()
        for line in lines:
            if is_tooling_line(line) or _IMPORT_LINE_RE.match(line):
                continue
            used.update(match.group(1) for match in IDENTIFIER_RE.finditer(line))

        return [
            self.create_error(line_num + line_offset, f"Imported '{name}' is unused", LintSeverity.INFO)
            for name, line_num in imported.items()
            if name not in used
        ]
