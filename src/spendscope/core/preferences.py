"""Engine configuration for spendscope.

Provides data-driven tunables for the parsers and the categorization engine,
loaded from a JSON file with fallback to sensible defaults.
"""

import copy
import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Dict, Any, Optional, Union

logger = logging.getLogger(__name__)

# Default configuration (used when no config file is supplied)
DEFAULT_CONFIG = {
    "$schema": "spendscope_config_v1",
    "version": "1.0",

    "parsers": {
        "period_tolerance_days": 120,
        "balance_tolerance": 0.01,
        "credit_page_limit": 2,
        "prelude_line_limit": 2
    },

    "categorization": {
        "rule_score_threshold": 60,
        "hint_min_count": 2,
        "hint_min_confidence": 0.65
    }
}


@dataclass
class ParserConfig:
    """Configuration for statement parsers."""
    period_tolerance_days: int = 120  # Declared period may drift this far from txn dates
    balance_tolerance: float = 0.01  # Running-balance reconciliation tolerance
    credit_page_limit: int = 2  # Credit ledgers sit on the first pages
    prelude_line_limit: int = 2  # Narration lines kept above a debit PDF date line

    @property
    def balance_tolerance_decimal(self) -> Decimal:
        """Balance tolerance as Decimal for money arithmetic."""
        return Decimal(str(self.balance_tolerance))


@dataclass
class CategorizationConfig:
    """Configuration for the categorization engine."""
    rule_score_threshold: float = 60
    hint_min_count: int = 2
    hint_min_confidence: float = 0.65


class EngineConfig:
    """
    Configuration bundle passed to parsers and the categorization engine.

    Usage:
        config = EngineConfig.load(Path("spendscope.json"))
        threshold = config.categorization.rule_score_threshold
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        """Initialize from configuration dictionary."""
        data = data if data is not None else copy.deepcopy(DEFAULT_CONFIG)
        self._raw = data

        parsers = data.get("parsers", {})
        self.parsers = ParserConfig(
            period_tolerance_days=int(parsers.get("period_tolerance_days", 120)),
            balance_tolerance=float(parsers.get("balance_tolerance", 0.01)),
            credit_page_limit=int(parsers.get("credit_page_limit", 2)),
            prelude_line_limit=int(parsers.get("prelude_line_limit", 2))
        )

        categorization = data.get("categorization", {})
        self.categorization = CategorizationConfig(
            rule_score_threshold=float(categorization.get("rule_score_threshold", 60)),
            hint_min_count=int(categorization.get("hint_min_count", 2)),
            hint_min_confidence=float(categorization.get("hint_min_confidence", 0.65))
        )

    @classmethod
    def default(cls) -> "EngineConfig":
        """Configuration with all defaults."""
        return cls(copy.deepcopy(DEFAULT_CONFIG))

    @classmethod
    def load(cls, config_path: Optional[Union[str, Path]] = None) -> "EngineConfig":
        """
        Load configuration with fallback to defaults.

        Args:
            config_path: JSON config file. Missing file means defaults.

        Returns:
            EngineConfig instance
        """
        data = copy.deepcopy(DEFAULT_CONFIG)

        if config_path is None:
            return cls(data)

        config_path = Path(config_path)
        if not config_path.exists():
            logger.debug(f"No config at {config_path}, using defaults")
            return cls(data)

        with open(config_path, encoding='utf-8') as f:
            user_data = json.load(f)

        for section, values in user_data.items():
            if section.startswith("$") or section == "version":
                continue
            if section not in DEFAULT_CONFIG:
                logger.warning(f"Ignoring unknown config section: {section}")
                continue
            for key in values:
                if key not in DEFAULT_CONFIG[section]:
                    logger.warning(f"Ignoring unknown config key: {section}.{key}")

        data = cls._deep_merge(data, user_data)
        logger.debug(f"Loaded config from {config_path}")
        return cls(data)

    @staticmethod
    def _deep_merge(base: Dict, override: Dict) -> Dict:
        """Deep merge two dictionaries, override takes precedence."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = EngineConfig._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Return the merged configuration dictionary."""
        return copy.deepcopy(self._raw)
