"""
cellint - lint Python notebooks cell by cell, with names carried across cells.
"""

from ._version import __version__, __version_info__, __release_date__
from .models import LintContext, LintError, LintSeverity, NotebookCell, NotebookError
from .services import CombinedNotebookLinter, LintEngine, RuffEngine

__all__ = [
    "__version__",
    "__version_info__",
    "__release_date__",
    "LintContext",
    "LintError",
    "LintSeverity",
    "NotebookCell",
    "NotebookError",
    "CombinedNotebookLinter",
    "LintEngine",
    "RuffEngine",
]
