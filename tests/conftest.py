"""
Pytest configuration for cellint.

Why this exists:
- The test suite imports the package as `cellint.*` straight from the checkout.
- Depending on pytest import mode / environment, the repository root may not be on `sys.path`,
  which makes `import cellint...` fail during collection when the package is not installed.

This file ensures the repo root is available on `sys.path` for all tests in a deterministic way.
"""

from __future__ import annotations

import sys
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Ensure the repository root is importable (so `import cellint...` works).
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


import pytest  # noqa: E402

from cellint.services.ruff_engine import clear_executable_cache  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_ruff_lookup():
    """Every test locates ruff from scratch (fakes must not leak between tests)."""
    clear_executable_cache()
    yield
    clear_executable_cache()
