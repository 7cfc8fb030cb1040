"""Asset-class mapping and target allocation policy."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from qtrack.core.utils.config import load_config_from_module

logger = logging.getLogger(__name__)


class AssetClass(Enum):
    STOCKS = "stocks"
    BONDS = "bonds"
    CASH = "cash"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class DeviationBand(Enum):
    """How far an asset class sits from its target allocation."""

    ON_TARGET = "on_target"
    WARNING = "warning"
    ERROR = "error"


DEFAULT_SYMBOL_CLASSES: dict[str, AssetClass] = {
    "XEQT.TO": AssetClass.STOCKS,
    "ZEQT.TO": AssetClass.STOCKS,
    "ZAG.TO": AssetClass.BONDS,
}

DEFAULT_TARGETS: dict[AssetClass, float] = {
    AssetClass.STOCKS: 50.0,
    AssetClass.BONDS: 50.0,
    AssetClass.CASH: 0.0,
}

DEFAULT_WARNING_MARGIN = 2.5
DEFAULT_ERROR_MARGIN = 5.0


@dataclass(frozen=True)
class ClassificationPolicy:
    """Static symbol -> asset class mapping plus target percentages.

    Args:
        symbol_classes: Ticker to asset class; unmapped tickers are CASH
        targets: Target allocation per asset class in percent, summing to 100
        warning_margin: Percentage-point distance from target that starts a warning
        error_margin: Percentage-point distance from target that is an error

    Examples:
        >>> policy = ClassificationPolicy()
        >>> policy.classify("ZAG.TO")
        <AssetClass.BONDS: 'bonds'>
        >>> policy.deviation_band(47.0, AssetClass.STOCKS)
        <DeviationBand.WARNING: 'warning'>
    """

    symbol_classes: Mapping[str, AssetClass] = field(
        default_factory=lambda: dict(DEFAULT_SYMBOL_CLASSES)
    )
    targets: Mapping[AssetClass, float] = field(default_factory=lambda: dict(DEFAULT_TARGETS))
    warning_margin: float = DEFAULT_WARNING_MARGIN
    error_margin: float = DEFAULT_ERROR_MARGIN

    def __post_init__(self) -> None:
        missing = [c.value for c in AssetClass if c not in self.targets]
        if missing:
            raise ValueError(f"Missing target allocation for: {', '.join(missing)}")
        if abs(sum(self.targets.values()) - 100.0) > 1e-6:
            raise ValueError("Target allocations must sum to 100")
        if not 0 < self.warning_margin <= self.error_margin:
            raise ValueError("Margins must satisfy 0 < warning_margin <= error_margin")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> ClassificationPolicy:
        """Build a policy from a CLASSIFICATION-style dict with string class names."""
        try:
            symbol_classes = {
                symbol: AssetClass(name.lower())
                for symbol, name in config.get("symbols", {}).items()
            }
            targets = {
                AssetClass(name.lower()): float(value)
                for name, value in config.get("targets", {}).items()
            }
        except ValueError as e:
            raise ValueError(f"Invalid classification config: {e}") from e

        return cls(
            symbol_classes=symbol_classes,
            targets=targets or dict(DEFAULT_TARGETS),
            warning_margin=float(config.get("warning_margin", DEFAULT_WARNING_MARGIN)),
            error_margin=float(config.get("error_margin", DEFAULT_ERROR_MARGIN)),
        )

    def classify(self, symbol: str) -> AssetClass:
        return self.symbol_classes.get(symbol, AssetClass.CASH)

    def target_percent(self, asset_class: AssetClass) -> float:
        return self.targets[asset_class]

    def deviation_band(self, actual_percent: float, asset_class: AssetClass) -> DeviationBand:
        """Classify ``actual_percent`` against the class target.

        The actual share is rounded to two decimals first, as it is displayed.
        """
        delta = abs(self.target_percent(asset_class) - round(actual_percent, 2))
        if delta < self.warning_margin:
            return DeviationBand.ON_TARGET
        if delta >= self.error_margin:
            return DeviationBand.ERROR
        return DeviationBand.WARNING


def load_policy(module_path: str = "configs.portfolio") -> ClassificationPolicy:
    """Load the policy from ``module_path``'s CLASSIFICATION dict, or use defaults."""
    config = load_config_from_module(module_path, config_name="CLASSIFICATION")
    if config is None:
        logger.info("No classification config found, using default policy")
        return ClassificationPolicy()
    return ClassificationPolicy.from_config(config)
