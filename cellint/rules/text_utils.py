"""
Text helpers shared by the heuristic rules.

The rules work on raw text rather than a syntax tree, so string literals and
comments have to be neutralized before identifiers or brackets are scanned.
All blanking helpers keep the text length and every newline in place, so
line and column positions computed on the blanked text are valid for the
original source.
"""

from __future__ import annotations

import re
from typing import List

IDENTIFIER_RE = re.compile(r"\b([A-Za-z_][A-Za-z0-9_]*)\b")
NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_TRIPLE_DOUBLE_RE = re.compile(r'[fFrRbBuU]{0,2}"""[\s\S]*?"""')
_TRIPLE_SINGLE_RE = re.compile(r"[fFrRbBuU]{0,2}'''[\s\S]*?'''")
_SINGLE_LINE_RE = re.compile(r"""[fFrRbBuU]{0,2}(["'])(?:\\.|(?!\1)[^\\\n])*\1""")

_SHELL_RE = re.compile(r"^\s*!")
_MAGIC_RE = re.compile(r"^\s*%%?[a-zA-Z]")
_LEADING_WS_RE = re.compile(r"^(\s*)")

CELL_MAGIC_PREFIXES = ("%%", "!")


def split_lines(code: str) -> List[str]:
    """Split on newlines only; a trailing newline yields a final empty line."""
    return code.split("\n")


def line_count(code: str) -> int:
    return len(code.split("\n"))


def is_shell_command(line: str) -> bool:
    return bool(_SHELL_RE.match(line))


def is_magic_command(line: str) -> bool:
    return bool(_MAGIC_RE.match(line))


def is_tooling_line(line: str) -> bool:
    """Shell escapes (!cmd) and IPython magics (%line / %%cell)."""
    return is_shell_command(line) or is_magic_command(line)


def is_skipped_cell(code: str) -> bool:
    """Empty cells and cells of non-Python tooling syntax (%%magic, !shell)."""
    stripped = code.strip()
    return stripped == "" or stripped.startswith(CELL_MAGIC_PREFIXES)


def leading_whitespace(line: str) -> str:
    return _LEADING_WS_RE.match(line).group(1)


def indent_width(line: str) -> int:
    return len(leading_whitespace(line))


def _blank_match(match: "re.Match[str]") -> str:
    text = match.group(0)
    return '""' + "".join("\n" if ch == "\n" else " " for ch in text[2:])


def blank_strings(code: str) -> str:
    """
    Replace every string literal (including prefixes such as f/r/b and
    triple-quoted strings) with an empty literal padded by spaces.
    """
    result = _TRIPLE_DOUBLE_RE.sub(_blank_match, code)
    result = _TRIPLE_SINGLE_RE.sub(_blank_match, result)
    return _SINGLE_LINE_RE.sub(_blank_match, result)


def blank_comment(line: str) -> str:
    """Blank a trailing comment. Expects string literals to be blanked already."""
    idx = line.find("#")
    if idx < 0:
        return line
    return line[:idx] + " " * (len(line) - idx)


def blank_strings_and_comments(code: str) -> List[str]:
    """Lines of ``code`` with string literals and comments blanked."""
    return [blank_comment(line) for line in split_lines(blank_strings(code))]


def mask_strings_and_comments(code: str) -> str:
    """
    Character scanner that replaces the contents of strings and comments with
    spaces. Unlike ``blank_strings`` it also handles strings left open at the
    end of the input, which matters for bracket matching.
    """
    out: List[str] = []
    i = 0
    n = len(code)
    in_string = None
    in_triple = None
    in_comment = False

    while i < n:
        ch = code[i]

        if in_comment:
            if ch == "\n":
                in_comment = False
                out.append("\n")
            else:
                out.append(" ")
            i += 1
            continue

        if in_triple:
            if code.startswith(in_triple, i):
                out.append("   ")
                i += 3
                in_triple = None
            else:
                out.append("\n" if ch == "\n" else " ")
                i += 1
            continue

        if in_string:
            if ch == "\\" and i + 1 < n:
                out.append(" ")
                out.append("\n" if code[i + 1] == "\n" else " ")
                i += 2
            elif ch == "\n":
                # single-quoted strings cannot span lines
                out.append("\n")
                in_string = None
                i += 1
            elif ch == in_string:
                out.append(" ")
                in_string = None
                i += 1
            else:
                out.append(" ")
                i += 1
            continue

        if ch == "#":
            in_comment = True
            out.append(" ")
            i += 1
            continue

        triple = code[i:i + 3]
        if triple in ('"""', "'''"):
            in_triple = triple
            out.append("   ")
            i += 3
            continue

        if ch in ('"', "'"):
            in_string = ch
            out.append(" ")
            i += 1
            continue

        out.append(ch)
        i += 1

    return "".join(out)
