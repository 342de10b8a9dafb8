"""
Version information for the cellint package.

Single source of truth for the version; update both __version__ and
__release_date__ when releasing.
"""

__version__ = "0.4.0"
__version_info__ = tuple(map(int, __version__.split(".")))
__release_date__ = "Oct 18, 2026"

__description__ = "Heuristic, cross-cell aware linter for Python notebooks"
