"""Build the lint engine selected by configuration."""

import logging
from typing import Optional, Union

from ..config import Config, config as default_config
from ..rules import create_default_rules
from .lint_engine import LintEngine
from .notebook_combiner import CombinedNotebookLinter
from .ruff_engine import RuffEngine

logger = logging.getLogger(__name__)


def create_engine(
    config: Optional[Config] = None,
    engine: Optional[str] = None,
) -> Union[LintEngine, RuffEngine]:
    """
    Create the configured engine.

    Args:
        config: configuration to read (defaults to the global one)
        engine: explicit engine name overriding the configuration
    """
    config = config or default_config
    name = engine or config.get_engine()

    if name == "ruff":
        logger.info("Using ruff lint engine")
        return RuffEngine(ruff_path=config.get_ruff_path(), timeout=config.get_ruff_timeout())
    if name != "heuristic":
        raise ValueError(f"Unknown engine '{name}'")

    return LintEngine(create_default_rules(config.get_enabled_rules()))


def create_combined_linter(config: Optional[Config] = None) -> CombinedNotebookLinter:
    config = config or default_config
    return CombinedNotebookLinter(create_default_rules(config.get_enabled_rules()))
