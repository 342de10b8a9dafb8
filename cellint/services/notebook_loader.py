"""
Load notebook cells from disk.

- ``.ipynb``: code cells read with nbformat; ``cell_index`` is the cell's
  position in the notebook (markdown cells included), so results point at the
  cell a user sees.
- ``.py``: "percent" scripts split on ``# %%`` marker lines. The marker stays
  the first line of its cell so absolute line numbers equal file line numbers.
"""

import logging
import re
from pathlib import Path
from typing import List, Union

import nbformat

from ..models.linting import NotebookCell

logger = logging.getLogger(__name__)

CELL_MARKER_RE = re.compile(r"^#\s*%%")


class NotebookLoadError(Exception):
    """The file could not be read as a notebook."""


def read_ipynb_cells(path: Union[str, Path]) -> List[NotebookCell]:
    try:
        notebook = nbformat.read(str(path), as_version=4)
    except Exception as e:
        raise NotebookLoadError(f"Failed to read notebook {path}: {e}") from e

    cells = [
        NotebookCell(code=cell.source, cell_index=index)
        for index, cell in enumerate(notebook.cells)
        if cell.cell_type == "code"
    ]
    logger.debug(f"Loaded {len(cells)} code cells from {path}")
    return cells


def split_percent_script(source: str) -> List[NotebookCell]:
    """Split a ``# %%`` script into cells; text before the first marker is a cell too."""
    lines = source.split("\n")
    starts = [index for index, line in enumerate(lines) if CELL_MARKER_RE.match(line)]
    if not starts or starts[0] != 0:
        starts.insert(0, 0)

    cells = []
    for position, start in enumerate(starts):
        end = starts[position + 1] if position + 1 < len(starts) else len(lines)
        cells.append(NotebookCell(code="\n".join(lines[start:end]), cell_index=position))
    return cells


def load_cells(path: Union[str, Path]) -> List[NotebookCell]:
    """Read the code cells of a ``.ipynb`` notebook or a ``# %%`` script."""
    path = Path(path)
    if not path.exists():
        raise NotebookLoadError(f"File not found: {path}")

    if path.suffix == ".ipynb":
        return read_ipynb_cells(path)
    if path.suffix == ".py":
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise NotebookLoadError(f"Failed to read {path}: {e}") from e
        return split_percent_script(source)

    raise NotebookLoadError(f"Unsupported file type '{path.suffix}' (expected .ipynb or .py)")
