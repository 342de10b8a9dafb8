"""Unclosed brackets rule: unbalanced (), [] and {} outside strings and comments."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..models.linting import LintContext, LintError, LintSeverity
from .base import BaseRule
from .text_utils import mask_strings_and_comments

BRACKETS = {"(": ")", "[": "]", "{": "}"}
CLOSE_TO_OPEN = {close: open_ for open_, close in BRACKETS.items()}


@dataclass
class OpenBracket:
    char: str
    line: int
    column: int
    expected: str


class UnclosedBracketsRule(BaseRule):
    """Detects unclosed, unmatched and mismatched brackets."""

    rule_id = "unclosed-brackets"
    description = "Detect unclosed parentheses, brackets, braces"

    def run(self, code: str, line_offset: int = 0, context: Optional[LintContext] = None) -> List[LintError]:
        errors: List[LintError] = []
        stack: List[OpenBracket] = []

        for line_index, line in enumerate(mask_strings_and_comments(code).split("\n")):
            line_num = line_index + 1
            for col_index, char in enumerate(line):
                if char in BRACKETS:
                    stack.append(OpenBracket(char, line_num, col_index + 1, BRACKETS[char]))
                elif char in CLOSE_TO_OPEN:
                    if not stack:
                        errors.append(
                            self.create_error(
                                line_num + line_offset,
                                f"Unmatched closing '{char}'",
                                LintSeverity.ERROR,
                                column=col_index + 1,
                            )
                        )
                    elif stack[-1].expected == char:
                        stack.pop()
                    else:
                        errors.append(
                            self.create_error(
                                line_num + line_offset,
                                f"Mismatched bracket: expected '{stack[-1].expected}' but found '{char}'",
                                LintSeverity.ERROR,
                                column=col_index + 1,
                            )
                        )

        for unclosed in stack:
            errors.append(
                self.create_error(
                    unclosed.line + line_offset,
                    f"Unclosed '{unclosed.char}' (opened at column {unclosed.column})",
                    LintSeverity.ERROR,
                    column=unclosed.column,
                )
            )

        return errors
