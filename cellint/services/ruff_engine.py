"""
Ruff-backed lint engine.

Runs the ``ruff`` linter on each cell in a subprocess and converts its JSON
diagnostics into lint errors. Like the heuristic engine it keeps a set of
names defined by earlier cells, and drops ruff's undefined-name reports
(F821) for those names.

The executable is located and verified once per process and configured path,
and later engines reuse it. Concurrent callers of ``load()`` share the same
in-flight task; a failed load is forgotten so it can be retried.
"""

from __future__ import annotations

import ast
import asyncio
import json
import logging
import re
import shutil
import subprocess
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from ..models.linting import ErrorStats, LintError, LintSeverity, NotebookError
from ..rules.text_utils import is_skipped_cell, is_tooling_line, leading_whitespace, line_count, split_lines
from . import result_aggregator
from .lint_engine import CellInput, coerce_cell

logger = logging.getLogger(__name__)

SYNTAX_ERROR_CODE = "E999"
UNDEFINED_NAME_CODE = "F821"
ERROR_CODE_PREFIXES = ("E9", "F82", "F4")

_UNDEFINED_NAME_RE = re.compile(r"Undefined name [`']([^`']+)[`']")

# configured ruff path (None: PATH lookup) -> (executable, version) of a verified ruff
_located_executables: Dict[Optional[str], Tuple[str, str]] = {}


def clear_executable_cache() -> None:
    """Forget every verified executable so the next load checks ruff again."""
    _located_executables.clear()


class RuffEngineError(RuntimeError):
    """ruff could not be located, started or understood."""


def ruff_severity(code: Optional[str]) -> LintSeverity:
    if code and code.startswith(ERROR_CODE_PREFIXES):
        return LintSeverity.ERROR
    return LintSeverity.WARNING


def blank_tooling_lines(code: str) -> str:
    """Replace IPython magics and shell escapes with ``pass`` at the same indent."""
    lines = []
    for line in split_lines(code):
        if is_tooling_line(line):
            lines.append(leading_whitespace(line) + "pass")
        else:
            lines.append(line)
    return "\n".join(lines)


def _target_names(target: ast.AST) -> Set[str]:
    names: Set[str] = set()
    if isinstance(target, ast.Name):
        names.add(target.id)
    elif isinstance(target, (ast.Tuple, ast.List)):
        for element in target.elts:
            names |= _target_names(element)
    elif isinstance(target, ast.Starred):
        names |= _target_names(target.value)
    return names


def extract_defined_names(tree: ast.AST) -> Set[str]:
    """Module-visible names bound by imports, assignments, defs and classes."""
    names: Set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                names.add(alias.asname or alias.name.split(".")[0])
        elif isinstance(node, ast.ImportFrom):
            for alias in node.names:
                if alias.name != "*":
                    names.add(alias.asname or alias.name)
        elif isinstance(node, ast.Assign):
            for target in node.targets:
                names |= _target_names(target)
        elif isinstance(node, (ast.AnnAssign, ast.AugAssign)):
            names |= _target_names(node.target)
        elif isinstance(node, (ast.For, ast.AsyncFor)):
            names |= _target_names(node.target)
        elif isinstance(node, (ast.With, ast.AsyncWith)):
            for item in node.items:
                if item.optional_vars is not None:
                    names |= _target_names(item.optional_vars)
        elif isinstance(node, ast.NamedExpr):
            names |= _target_names(node.target)
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            names.add(node.name)
    return names


class RuffEngine:
    """Async lint engine backed by the ruff executable."""

    def __init__(
        self,
        ruff_path: Optional[str] = None,
        timeout: float = 30.0,
        select: Optional[Sequence[str]] = None,
    ):
        self.ruff_path = ruff_path
        self.timeout = timeout
        self.select = list(select) if select else None

        self.executable: Optional[str] = None
        self.version: Optional[str] = None
        self._ready = False
        self._load_task: Optional["asyncio.Task[None]"] = None
        self._context: Set[str] = set()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def is_ready(self) -> bool:
        return self._ready

    def is_loading(self) -> bool:
        return self._load_task is not None and not self._load_task.done()

    async def load(self) -> None:
        """Locate and verify ruff. Safe to call concurrently."""
        if self._ready:
            return

        task = self._load_task
        if task is None:
            task = asyncio.ensure_future(self._load())
            self._load_task = task

        try:
            await task
        except Exception as e:
            if self._load_task is task:
                self._load_task = None
            logger.error(f"Failed to load ruff: {e}")
            raise

    async def initialize(self) -> None:
        await self.load()

    async def _load(self) -> None:
        located = _located_executables.get(self.ruff_path)
        if located is not None:
            self.executable, self.version = located
            self._ready = True
            return

        executable = self.ruff_path or shutil.which("ruff")
        if not executable:
            raise RuffEngineError("ruff executable not found on PATH")

        try:
            returncode, stdout, stderr = await self._run([executable, "--version"])
        except OSError as e:
            raise RuffEngineError(f"Cannot run '{executable}': {e}") from e
        if returncode != 0:
            raise RuffEngineError(f"'{executable} --version' exited with {returncode}: {stderr.strip()}")

        self.executable = executable
        self.version = stdout.strip()
        self._ready = True
        _located_executables[self.ruff_path] = (executable, self.version)
        logger.info(f"Ruff engine ready ({self.version})")

    async def _run(self, args: List[str], stdin: Optional[str] = None) -> Tuple[int, str, str]:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdin=subprocess.PIPE if stdin is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(stdin.encode() if stdin is not None else None),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise RuffEngineError(f"ruff timed out after {self.timeout}s")
        return process.returncode, stdout.decode(errors="replace"), stderr.decode(errors="replace")

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    def reset_context(self) -> None:
        self._context = set()

    def get_context(self) -> Set[str]:
        return set(self._context)

    def add_to_context(self, names) -> None:
        self._context.update(names)

    # ------------------------------------------------------------------
    # Linting
    # ------------------------------------------------------------------

    def _check_command(self) -> List[str]:
        command = [
            self.executable,
            "check",
            "--isolated",
            "--no-cache",
            "--output-format",
            "json",
            "--stdin-filename",
            "cell.py",
        ]
        if self.select:
            command += ["--select", ",".join(self.select)]
        command.append("-")
        return command

    async def _check(self, source: str) -> List[Dict[str, Any]]:
        returncode, stdout, stderr = await self._run(self._check_command(), stdin=source)
        # 0: clean, 1: diagnostics found, anything else: ruff itself failed
        if returncode not in (0, 1):
            raise RuffEngineError(f"ruff exited with {returncode}: {stderr.strip()}")
        if not stdout.strip():
            return []
        try:
            return json.loads(stdout)
        except json.JSONDecodeError as e:
            raise RuffEngineError(f"Failed to parse ruff output: {stdout[:200]}") from e

    def _convert(self, diagnostic: Dict[str, Any], line_offset: int, cell_index: int) -> Optional[LintError]:
        code = diagnostic.get("code") or SYNTAX_ERROR_CODE
        message = diagnostic.get("message", "")

        if code == UNDEFINED_NAME_CODE:
            match = _UNDEFINED_NAME_RE.search(message)
            if match and match.group(1) in self._context:
                return None

        location = diagnostic.get("location") or {}
        return LintError(
            line=(location.get("row") or 1) + line_offset,
            column=location.get("column"),
            message=message,
            severity=ruff_severity(code),
            rule_id=code,
            cell_index=cell_index,
        )

    async def lint_cell(self, code: str, line_offset: int = 0, cell_index: int = 0) -> List[LintError]:
        """
        Lint one cell with the names defined by the cells linted before it.

        The cell's own definitions are added to the context only when linting succeeds.
        """
        if not self._ready:
            await self.load()

        if is_skipped_cell(code):
            return []

        source = blank_tooling_lines(code)
        try:
            tree = ast.parse(source)
        except SyntaxError as e:
            return [
                LintError(
                    line=(e.lineno or 1) + line_offset,
                    column=e.offset or None,
                    message=f"SyntaxError: {e.msg}",
                    severity=LintSeverity.ERROR,
                    rule_id=SYNTAX_ERROR_CODE,
                    cell_index=cell_index,
                )
            ]

        try:
            diagnostics = await self._check(source)
            errors = [
                error
                for error in (self._convert(diagnostic, line_offset, cell_index) for diagnostic in diagnostics)
                if error is not None
            ]
        except Exception as e:
            logger.error(f"Ruff linting failed on cell {cell_index}: {e}")
            return []

        self._context |= extract_defined_names(tree)
        return errors

    async def lint_notebook(self, cells: Sequence[CellInput]) -> List[NotebookError]:
        if not self._ready:
            await self.load()

        self.reset_context()

        all_errors: List[NotebookError] = []
        line_offset = 0

        for position, raw_cell in enumerate(cells):
            cell = coerce_cell(raw_cell, position)
            for error in await self.lint_cell(cell.code, line_offset, cell.cell_index):
                all_errors.append(
                    NotebookError(
                        **error.model_dump(exclude={"cell_index"}),
                        cell_index=cell.cell_index,
                        cell_line=error.line - line_offset,
                        element=cell.element,
                    )
                )
            line_offset += line_count(cell.code)

        logger.info(f"Ruff linted {len(cells)} cells: {result_aggregator.summarize(all_errors)}")
        return all_errors

    def get_stats(self, errors) -> ErrorStats:
        return result_aggregator.get_stats(errors)
