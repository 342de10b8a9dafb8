"""
Configuration management for cellint.

Configuration priority (highest to lowest):
1. Environment variables
2. cellint.json file (path overridable with CELLINT_CONFIG)
3. Built-in defaults
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .models.linting import LintSeverity
from .rules import RULES_BY_ID

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "cellint.json"

ENGINES = ("heuristic", "ruff")
SEVERITIES = tuple(severity.value for severity in LintSeverity)

DEFAULT_ENGINE = "heuristic"
DEFAULT_MIN_SEVERITY = LintSeverity.INFO.value
DEFAULT_RUFF_TIMEOUT = 30.0
DEFAULT_LOG_LEVEL = "INFO"


class Config:
    """
    Project-level configuration manager.

    Priority: ENV > cellint.json > defaults

    Environment variables:
      - CELLINT_CONFIG: path of the JSON config file
      - CELLINT_ENGINE: lint engine (heuristic, ruff)
      - CELLINT_MIN_SEVERITY: lowest severity reported (error, warning, info)
      - CELLINT_RUFF_PATH: ruff executable (defaults to a PATH lookup)
      - CELLINT_RUFF_TIMEOUT: seconds allowed per ruff call
      - CELLINT_LOG_LEVEL: logging level for the CLI and server
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        self.config_file = Path(config_file or os.getenv("CELLINT_CONFIG") or DEFAULT_CONFIG_FILE)
        self.data = self.load()

    def load(self) -> Dict[str, Any]:
        """Load configuration from file."""
        if self.config_file.exists():
            try:
                with open(self.config_file, "r") as f:
                    return json.load(f)
            except Exception as e:
                logger.error(f"Failed to load config: {e}")
                return self._default_config()
        else:
            return self._default_config()

    def save(self) -> None:
        """Save configuration to file."""
        try:
            with open(self.config_file, "w") as f:
                json.dump(self.data, f, indent=2)
            logger.info(f"Configuration saved to {self.config_file}")
        except Exception as e:
            logger.error(f"Failed to save config: {e}")

    def _default_config(self) -> Dict[str, Any]:
        """Return default configuration."""
        return {
            "engine": DEFAULT_ENGINE,
            "min_severity": DEFAULT_MIN_SEVERITY,
            "rules": {rule_id: True for rule_id in RULES_BY_ID},
            "ruff": {"timeout": DEFAULT_RUFF_TIMEOUT},
            "log_level": DEFAULT_LOG_LEVEL,
        }

    def get_engine(self) -> str:
        """Get the lint engine name (CELLINT_ENGINE > cellint.json > default)."""
        engine = os.getenv("CELLINT_ENGINE") or self.data.get("engine", DEFAULT_ENGINE)
        if engine not in ENGINES:
            logger.warning(f"Unknown engine '{engine}', using '{DEFAULT_ENGINE}'")
            return DEFAULT_ENGINE
        return engine

    def set_engine(self, engine: str) -> None:
        if engine not in ENGINES:
            raise ValueError(f"Unknown engine '{engine}'. Expected one of: {', '.join(ENGINES)}")
        self.data["engine"] = engine
        self.save()

    def get_min_severity(self) -> str:
        """Get the minimum reported severity (CELLINT_MIN_SEVERITY > cellint.json > default)."""
        severity = str(os.getenv("CELLINT_MIN_SEVERITY") or self.data.get("min_severity", DEFAULT_MIN_SEVERITY)).lower()
        if severity not in SEVERITIES:
            logger.warning(f"Unknown minimum severity '{severity}', using '{DEFAULT_MIN_SEVERITY}'")
            return DEFAULT_MIN_SEVERITY
        return severity

    def is_rule_enabled(self, rule_id: str) -> bool:
        return bool(self.data.get("rules", {}).get(rule_id, True))

    def get_enabled_rules(self) -> List[str]:
        """Built-in rule ids that are not switched off, in registration order."""
        return [rule_id for rule_id in RULES_BY_ID if self.is_rule_enabled(rule_id)]

    def set_rule_enabled(self, rule_id: str, enabled: bool) -> None:
        if rule_id not in RULES_BY_ID:
            raise ValueError(f"Unknown rule '{rule_id}'")
        self.data.setdefault("rules", {})[rule_id] = enabled
        self.save()

    def get_ruff_path(self) -> Optional[str]:
        """Get the ruff executable (CELLINT_RUFF_PATH > cellint.json > PATH lookup)."""
        env_path = os.getenv("CELLINT_RUFF_PATH")
        if env_path:
            return env_path
        return self.data.get("ruff", {}).get("path")

    def get_ruff_timeout(self) -> float:
        """Get the per-call ruff timeout in seconds."""
        value = os.getenv("CELLINT_RUFF_TIMEOUT") or self.data.get("ruff", {}).get("timeout", DEFAULT_RUFF_TIMEOUT)
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(f"Invalid ruff timeout '{value}', using {DEFAULT_RUFF_TIMEOUT}")
            return DEFAULT_RUFF_TIMEOUT

    def get_log_level(self) -> str:
        env_level = os.getenv("CELLINT_LOG_LEVEL")
        if env_level:
            return env_level.upper()
        return str(self.data.get("log_level", DEFAULT_LOG_LEVEL)).upper()


# Global config instance
config = Config()
