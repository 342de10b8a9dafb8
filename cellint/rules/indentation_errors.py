"""
Indentation errors rule.

Tracks an indentation stack line by line. Lines that continue a statement
(inside unclosed brackets or after a backslash) are not checked. Strings and
comments are blanked first, so docstring bodies and commented-out code never
take part in the indentation checks.
"""

from __future__ import annotations

from typing import List, Optional

from ..models.linting import LintContext, LintError, LintSeverity
from .base import BaseRule
from .text_utils import blank_strings_and_comments, is_tooling_line, leading_whitespace, split_lines


def count_unclosed_brackets(clean_line: str) -> int:
    """Net count of opening brackets on an already blanked line."""
    count = 0
    for char in clean_line:
        if char in "([{":
            count += 1
        elif char in ")]}":
            count -= 1
    return count


class IndentationErrorsRule(BaseRule):
    """Detects Python indentation issues."""

    rule_id = "indentation-errors"
    description = "Detect missing indentation after colons"

    def run(self, code: str, line_offset: int = 0, context: Optional[LintContext] = None) -> List[LintError]:
        errors: List[LintError] = []

        uses_tabs = False
        uses_spaces = False
        indent_stack = [0]
        prev_ends_with_colon = False
        unclosed_brackets = 0
        in_continuation = False

        raw_lines = split_lines(code)
        clean_lines = blank_strings_and_comments(code)

        for line_index, (line, clean) in enumerate(zip(raw_lines, clean_lines)):
            line_num = line_index + line_offset + 1
            content = clean.rstrip()

            if not content.strip() or is_tooling_line(line):
                continue

            whitespace = leading_whitespace(line)
            has_tabs = "\t" in whitespace
            has_spaces = " " in whitespace

            if has_tabs and has_spaces:
                errors.append(self.create_error(line_num, "Mixed tabs and spaces in indentation", LintSeverity.ERROR))

            uses_tabs = uses_tabs or has_tabs
            uses_spaces = uses_spaces or has_spaces

            if uses_tabs and uses_spaces:
                if has_tabs and not has_spaces:
                    errors.append(
                        self.create_error(
                            line_num,
                            "Inconsistent indentation: file uses spaces elsewhere but this line uses tabs",
                            LintSeverity.WARNING,
                        )
                    )
                elif has_spaces and not has_tabs:
                    errors.append(
                        self.create_error(
                            line_num,
                            "Inconsistent indentation: file uses tabs elsewhere but this line uses spaces",
                            LintSeverity.WARNING,
                        )
                    )

            indent_level = len(whitespace.replace("\t", "    "))

            if unclosed_brackets > 0 or in_continuation:
                unclosed_brackets += count_unclosed_brackets(content)
                in_continuation = content.endswith("\\")
                prev_ends_with_colon = content.endswith(":")
                continue

            if prev_ends_with_colon:
                if indent_level <= indent_stack[-1]:
                    errors.append(self.create_error(line_num, "Expected indented block after colon", LintSeverity.ERROR))
                else:
                    indent_stack.append(indent_level)
            elif indent_level > indent_stack[-1]:
                errors.append(self.create_error(line_num, "Unexpected indent", LintSeverity.ERROR))
                indent_stack.append(indent_level)
            elif indent_level < indent_stack[-1]:
                while len(indent_stack) > 1 and indent_stack[-1] > indent_level:
                    indent_stack.pop()
                if indent_stack[-1] != indent_level:
                    errors.append(
                        self.create_error(
                            line_num,
                            "Unindent does not match any outer indentation level",
                            LintSeverity.ERROR,
                        )
                    )

            prev_ends_with_colon = content.endswith(":")
            unclosed_brackets += count_unclosed_brackets(content)
            in_continuation = content.endswith("\\")

            if has_spaces:
                space_count = len(whitespace.replace("\t", ""))
                if space_count % 4 != 0 and space_count % 2 != 0:
                    errors.append(
                        self.create_error(
                            line_num,
                            f"Inconsistent indentation: {space_count} spaces (expected multiple of 2 or 4)",
                            LintSeverity.WARNING,
                        )
                    )

        return errors
