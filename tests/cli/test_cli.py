"""Tests for the cellint command line."""

import json

import nbformat
import pytest

from cellint import cli
from cellint.config import Config


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    for name in ("CELLINT_ENGINE", "CELLINT_MIN_SEVERITY", "CELLINT_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    config = Config(tmp_path / "cellint.json")
    monkeypatch.setattr(cli, "config", config)
    return config


@pytest.fixture
def script(tmp_path):
    path = tmp_path / "analysis.py"
    path.write_text(
        "# %% load\n"
        "values = [1, 2, 3]\n"
        "# %% report\n"
        "print(total)\n"
    )
    return path


@pytest.fixture
def notebook(tmp_path):
    nb = nbformat.v4.new_notebook()
    nb.cells = [
        nbformat.v4.new_markdown_cell("# Title"),
        nbformat.v4.new_code_cell("import math\nprint(math.pi)"),
        nbformat.v4.new_code_cell("radius = 2\narea = math.pi * radius ** 2"),
        nbformat.v4.new_code_cell("if area > 1: print(Area)"),
    ]
    path = tmp_path / "shapes.ipynb"
    nbformat.write(nb, str(path))
    return path


class TestLint:
    def test_script_with_errors(self, script, capsys):
        assert cli.main(["lint", str(script)]) == 1
        out = capsys.readouterr().out.splitlines()

        assert out == [
            f"{script}:4:7: [cell 1, line 2] error undefined-variables: Undefined variable 'total'",
            "1 issue (1 error, 0 warnings, 0 info)",
        ]

    def test_notebook_cell_index_is_notebook_position(self, notebook, capsys):
        assert cli.main(["lint", str(notebook), "--json"]) == 1
        data = json.loads(capsys.readouterr().out)

        assert data["path"] == str(notebook)
        assert [(r["cellIndex"], r["cellLine"], r["line"], r["msg"]) for r in data["errors"]] == [
            (3, 1, 5, "Undefined variable 'Area'"),
        ]
        assert data["stats"]["by_rule"] == {"undefined-variables": 1}

    def test_clean_file_exits_zero(self, tmp_path, capsys):
        path = tmp_path / "clean.py"
        path.write_text("# %%\nvalue = 1\n# %%\nprint(value)\n")
        assert cli.main(["lint", str(path)]) == 0
        assert capsys.readouterr().out.strip() == "0 issues (0 errors, 0 warnings, 0 info)"

    def test_warnings_only_exit_zero(self, tmp_path, capsys):
        path = tmp_path / "shadow.py"
        path.write_text("list = [1, 2]\nprint(list)\n")
        assert cli.main(["lint", str(path)]) == 0
        assert "warning redefined-builtins" in capsys.readouterr().out

    def test_min_severity(self, tmp_path, capsys):
        path = tmp_path / "shadow.py"
        path.write_text("list = [1, 2]\nprint(list)\n")
        assert cli.main(["lint", str(path), "--min-severity", "error"]) == 0
        assert capsys.readouterr().out.strip() == "0 issues (0 errors, 0 warnings, 0 info)"

    def test_combined_allows_forward_references(self, tmp_path, capsys):
        path = tmp_path / "forward.py"
        path.write_text("# %%\nprint(later)\n# %%\nlater = 1\n")
        assert cli.main(["lint", str(path)]) == 1
        capsys.readouterr()
        assert cli.main(["lint", str(path), "--combined"]) == 0

    @pytest.mark.parametrize("name, content", [("missing.py", None), ("notes.txt", "x = 1"), ("broken.ipynb", "{")])
    def test_unreadable_input(self, tmp_path, capsys, name, content):
        path = tmp_path / name
        if content is not None:
            path.write_text(content)
        assert cli.main(["lint", str(path)]) == 2
        assert capsys.readouterr().err.startswith("error:")

    def test_missing_ruff(self, script, capsys, monkeypatch):
        monkeypatch.setenv("CELLINT_RUFF_PATH", "/nonexistent/bin/ruff")
        assert cli.main(["lint", str(script), "--engine", "ruff"]) == 2
        assert "error:" in capsys.readouterr().err


class TestRules:
    def test_lists_rules_with_state(self, isolated_config, capsys):
        isolated_config.data["rules"]["empty-cells"] = False
        assert cli.main(["rules"]) == 0
        lines = capsys.readouterr().out.splitlines()

        assert len(lines) == 9
        assert lines[0].startswith("on  undefined-variables")
        assert any(line.startswith("off empty-cells") for line in lines)


class TestParser:
    def test_requires_command(self):
        with pytest.raises(SystemExit):
            cli.main([])

    def test_rejects_unknown_engine(self, script):
        with pytest.raises(SystemExit):
            cli.main(["lint", str(script), "--engine", "pylint"])

    def test_serve_defaults(self):
        args = cli.build_parser().parse_args(["serve"])
        assert (args.host, args.port, args.func) == ("127.0.0.1", 8000, cli.cmd_serve)
