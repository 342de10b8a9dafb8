from __future__ import annotations

from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")


PROJECT_ROOT = Path(__file__).resolve().parent.parent


def test_version_is_single_source_of_truth_across_repo() -> None:
    """
    Prevent "trust drift" in public-facing version surfaces.

    Canonical source of truth: `cellint/_version.py`.
    """
    from cellint import __version__ as package_version
    from cellint._version import __version__ as canonical_version, __version_info__

    assert package_version == canonical_version
    assert ".".join(map(str, __version_info__)) == canonical_version

    # Packaging must derive version dynamically (no manual duplication)
    pyproject = tomllib.loads((PROJECT_ROOT / "pyproject.toml").read_text(encoding="utf-8"))
    assert pyproject["project"]["dynamic"] == ["version"]
    assert pyproject["tool"]["setuptools"]["dynamic"]["version"]["attr"] == "cellint._version.__version__"

    # Runtime surfaces report the same version
    from cellint.cli import build_parser
    from cellint.main import app

    assert app.version == canonical_version
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--version"])

    # ...and the same description
    from cellint._version import __description__

    assert app.description == __description__
    assert build_parser().description == __description__
