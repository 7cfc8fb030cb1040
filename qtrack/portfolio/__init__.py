"""Portfolio aggregation, asset-class policy and tabular reports."""

from qtrack.portfolio.aggregator import (
    AggregateBucket,
    ClassAllocation,
    PortfolioAggregator,
    PortfolioSummary,
    SymbolAllocation,
)
from qtrack.portfolio.classification import (
    AssetClass,
    ClassificationPolicy,
    DeviationBand,
    load_policy,
)

__all__ = [
    "AggregateBucket",
    "AssetClass",
    "ClassAllocation",
    "ClassificationPolicy",
    "DeviationBand",
    "PortfolioAggregator",
    "PortfolioSummary",
    "SymbolAllocation",
    "load_policy",
]
