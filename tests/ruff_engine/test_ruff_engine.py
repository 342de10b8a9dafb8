"""
Tests for the ruff-backed engine.

The ruff subprocess is never started: `RuffEngine._run` (or the asyncio
subprocess factory underneath it) is patched with fakes.
"""

import ast
import asyncio
import json
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cellint.models.linting import LintSeverity
from cellint.services.ruff_engine import (
    RuffEngine,
    RuffEngineError,
    blank_tooling_lines,
    clear_executable_cache,
    extract_defined_names,
    ruff_severity,
)


def diagnostic(code, message, row, column=1):
    return {"code": code, "message": message, "location": {"row": row, "column": column}}


class FakeRuff:
    """
    Stands in for RuffEngine._run; answers --version and check calls.

    Installed on the class as a plain callable instance, so it is not bound
    and receives only the call arguments.
    """

    def __init__(self, diagnostics_by_source=None, check_returncode=1, version_returncode=0):
        self.diagnostics_by_source = diagnostics_by_source or {}
        self.check_returncode = check_returncode
        self.version_returncode = version_returncode
        self.version_calls = 0
        self.check_inputs = []

    async def __call__(self, args, stdin=None):
        await asyncio.sleep(0)
        if "--version" in args:
            self.version_calls += 1
            return self.version_returncode, "ruff 0.6.9\n", "" if self.version_returncode == 0 else "broken"
        self.check_inputs.append(stdin)
        if self.check_returncode not in (0, 1):
            return self.check_returncode, "", "error: something went wrong"
        return self.check_returncode, json.dumps(self.diagnostics_by_source.get(stdin, [])), ""


@pytest.fixture
def which():
    with patch("cellint.services.ruff_engine.shutil.which", return_value="/usr/bin/ruff") as mock_which:
        yield mock_which


def patched_run(fake):
    return patch.object(RuffEngine, "_run", new=fake)


class TestLoading:
    def test_concurrent_loads_share_one_task(self, which):
        fake = FakeRuff()
        engine = RuffEngine()

        async def scenario():
            first = asyncio.ensure_future(engine.load())
            await asyncio.sleep(0)
            assert engine.is_loading()
            await asyncio.gather(first, engine.load(), engine.initialize())

        with patched_run(fake):
            asyncio.run(scenario())

        assert fake.version_calls == 1
        assert engine.is_ready()
        assert not engine.is_loading()
        assert engine.version == "ruff 0.6.9"
        assert engine.executable == "/usr/bin/ruff"

    def test_missing_executable_can_be_retried(self, which, caplog):
        which.return_value = None
        engine = RuffEngine()

        with pytest.raises(RuffEngineError):
            asyncio.run(engine.load())
        assert not engine.is_ready()
        assert not engine.is_loading()
        assert "Failed to load ruff" in caplog.text

        which.return_value = "/opt/ruff"
        with patched_run(FakeRuff()):
            asyncio.run(engine.load())
        assert engine.is_ready()
        assert engine.executable == "/opt/ruff"

    def test_failing_version_check(self, which):
        with patched_run(FakeRuff(version_returncode=2)):
            with pytest.raises(RuffEngineError):
                asyncio.run(RuffEngine().load())

    def test_explicit_path_skips_lookup(self, which):
        engine = RuffEngine(ruff_path="/custom/ruff")
        with patched_run(FakeRuff()):
            asyncio.run(engine.load())
        assert engine.executable == "/custom/ruff"
        which.assert_not_called()

    def test_verified_executable_reused_by_later_engines(self, which):
        fake = FakeRuff()
        engine = RuffEngine()
        engine.add_to_context({"x"})

        with patched_run(fake):
            asyncio.run(engine.load())
            second = RuffEngine()
            asyncio.run(second.load())

        assert fake.version_calls == 1
        assert second.is_ready()
        assert (second.executable, second.version) == ("/usr/bin/ruff", "ruff 0.6.9")
        assert second.get_context() == set()

    def test_lookup_is_per_configured_path(self, which):
        fake = FakeRuff()
        with patched_run(fake):
            asyncio.run(RuffEngine().load())
            asyncio.run(RuffEngine(ruff_path="/custom/ruff").load())
            clear_executable_cache()
            asyncio.run(RuffEngine().load())
        assert fake.version_calls == 3

    def test_lint_cell_loads_on_demand(self, which):
        fake = FakeRuff()
        engine = RuffEngine()
        with patched_run(fake):
            assert asyncio.run(engine.lint_cell("x = 1")) == []
        assert engine.is_ready()
        assert fake.version_calls == 1


class TestLintCell:
    def test_diagnostics_converted(self, which):
        source = "import os\nx == None"
        fake = FakeRuff({source: [
            diagnostic("F401", "`os` imported but unused", 1, 8),
            diagnostic("E711", "Comparison to `None` should be `cond is None`", 2, 6),
        ]})
        engine = RuffEngine()

        with patched_run(fake):
            errors = asyncio.run(engine.lint_cell(source, line_offset=10, cell_index=3))

        assert [(e.line, e.column, e.severity, e.rule_id, e.cell_index) for e in errors] == [
            (11, 8, LintSeverity.ERROR, "F401", 3),
            (12, 6, LintSeverity.WARNING, "E711", 3),
        ]

    def test_undefined_names_from_context_dropped(self, which):
        second = "z = x + y"
        fake = FakeRuff({second: [
            diagnostic("F821", "Undefined name `x`", 1, 5),
            diagnostic("F821", "Undefined name `y`", 1, 9),
        ]})
        engine = RuffEngine()

        async def scenario():
            await engine.lint_cell("x = 1")
            return await engine.lint_cell(second, line_offset=1)

        with patched_run(fake):
            errors = asyncio.run(scenario())

        assert [e.message for e in errors] == ["Undefined name `y`"]
        assert engine.get_context() == {"x", "z"}

    def test_syntax_error_reported_once(self, which):
        fake = FakeRuff()
        engine = RuffEngine()

        with patched_run(fake):
            errors = asyncio.run(engine.lint_cell("ok = 1\ndef broken(:\n    pass", line_offset=5))

        assert len(errors) == 1
        error = errors[0]
        assert error.rule_id == "E999"
        assert error.severity == LintSeverity.ERROR
        assert error.line == 7
        assert error.message.startswith("SyntaxError:")
        assert fake.check_inputs == []
        assert engine.get_context() == set()

    @pytest.mark.parametrize("code", ["", "   ", "%%bash\nls", "!pip install ruff"])
    def test_magic_and_empty_cells_skipped(self, which, code):
        fake = FakeRuff()
        with patched_run(fake):
            assert asyncio.run(RuffEngine().lint_cell(code)) == []
        assert fake.check_inputs == []

    def test_line_magics_blanked_before_check(self, which):
        fake = FakeRuff()
        with patched_run(fake):
            asyncio.run(RuffEngine().lint_cell("%matplotlib inline\nif True:\n    !ls\nvalue = 1"))
        assert fake.check_inputs == ["pass\nif True:\n    pass\nvalue = 1"]

    def test_ruff_failure_leaves_context_untouched(self, which, caplog):
        engine = RuffEngine()
        with patched_run(FakeRuff(check_returncode=2)):
            with caplog.at_level(logging.ERROR):
                errors = asyncio.run(engine.lint_cell("x = 1", cell_index=4))
        assert errors == []
        assert engine.get_context() == set()
        assert "cell 4" in caplog.text


class TestLintNotebook:
    def test_offsets_and_context(self, which):
        third = "print(a)\nprint(b)"
        fake = FakeRuff({third: [
            diagnostic("F821", "Undefined name `a`", 1, 7),
            diagnostic("F821", "Undefined name `b`", 2, 7),
        ]})
        engine = RuffEngine()
        engine.add_to_context({"stale"})

        cells = [
            {"code": "a = 1\n", "cellIndex": 0},
            {"code": "%%time\nslow()", "cellIndex": 1},
            {"code": third, "cellIndex": 2, "element": "handle"},
        ]
        with patched_run(fake):
            errors = asyncio.run(engine.lint_notebook(cells))

        assert len(errors) == 1
        error = errors[0]
        assert error.message == "Undefined name `b`"
        assert error.line == 2 + 2 + 2
        assert error.cell_line == 2
        assert error.cell_index == 2
        assert error.element == "handle"
        assert "stale" not in engine.get_context()

    def test_stats(self, which):
        engine = RuffEngine()
        fake = FakeRuff({"import os": [diagnostic("F401", "`os` imported but unused", 1, 8)]})
        with patched_run(fake):
            errors = asyncio.run(engine.lint_notebook([{"code": "import os"}]))
        stats = engine.get_stats(errors)
        assert stats.total == 1
        assert stats.by_rule == {"F401": 1}
        assert stats.by_severity == {"error": 1, "warning": 0, "info": 0}


class TestSubprocess:
    def test_run_passes_stdin_and_decodes_output(self):
        process = MagicMock()
        process.communicate = AsyncMock(return_value=(b"[]", b""))
        process.returncode = 1

        with patch(
            "cellint.services.ruff_engine.asyncio.create_subprocess_exec",
            new=AsyncMock(return_value=process),
        ) as create:
            result = asyncio.run(RuffEngine()._run(["ruff", "check", "-"], stdin="x = 1"))

        assert result == (1, "[]", "")
        assert create.call_args.args == ("ruff", "check", "-")
        process.communicate.assert_awaited_once_with(b"x = 1")

    def test_check_command(self):
        engine = RuffEngine(select=["F", "E9"])
        engine.executable = "ruff"
        assert engine._check_command() == [
            "ruff", "check", "--isolated", "--no-cache", "--output-format", "json",
            "--stdin-filename", "cell.py", "--select", "F,E9", "-",
        ]


class TestHelpers:
    @pytest.mark.parametrize(
        "code, severity",
        [
            ("E999", LintSeverity.ERROR),
            ("F821", LintSeverity.ERROR),
            ("F401", LintSeverity.ERROR),
            ("E711", LintSeverity.WARNING),
            ("F841", LintSeverity.WARNING),
            (None, LintSeverity.WARNING),
        ],
    )
    def test_ruff_severity(self, code, severity):
        assert ruff_severity(code) == severity

    def test_extract_defined_names(self):
        tree = ast.parse(
            "import os.path\n"
            "from math import pi as PI\n"
            "a, (b, *c) = 1, (2, 3)\n"
            "d: int = 4\n"
            "for e in []:\n"
            "    pass\n"
            "with open('f') as g:\n"
            "    pass\n"
            "def h():\n"
            "    pass\n"
            "class K:\n"
            "    pass\n"
            "(w := 5)\n"
        )
        assert extract_defined_names(tree) == {"os", "PI", "a", "b", "c", "d", "e", "g", "h", "K", "w"}

    def test_blank_tooling_lines_keeps_line_count(self):
        code = "%load_ext autoreload\nx = 1\n  !echo hi"
        assert blank_tooling_lines(code) == "pass\nx = 1\n  pass"
