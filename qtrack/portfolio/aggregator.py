"""Portfolio aggregation by symbol and asset class."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from qtrack.data.models import Position
from qtrack.errors import DivisionUndefined
from qtrack.portfolio.classification import AssetClass, ClassificationPolicy, DeviationBand

logger = logging.getLogger(__name__)


@dataclass
class AggregateBucket:
    """Running cost and market value for one symbol or asset class."""

    total_cost: float = 0.0
    total_market_value: float = 0.0

    def add(self, cost: float, market_value: float) -> None:
        self.total_cost += cost
        self.total_market_value += market_value


@dataclass(frozen=True)
class SymbolAllocation:
    symbol: str
    asset_class: AssetClass
    total_cost: float
    total_market_value: float
    percent: float | None


@dataclass(frozen=True)
class ClassAllocation:
    asset_class: AssetClass
    total_cost: float
    total_market_value: float
    percent: float | None
    target_percent: float
    band: DeviationBand | None


@dataclass(frozen=True)
class PortfolioSummary:
    """Immutable result of aggregation.

    Allocations are ordered by descending market value. ``percent`` and
    ``band`` are None when the portfolio has no market value.
    """

    total_cost: float
    total_market_value: float
    symbols: tuple[SymbolAllocation, ...]
    classes: tuple[ClassAllocation, ...]

    @property
    def total_pnl(self) -> float:
        return self.total_market_value - self.total_cost

    @property
    def is_empty(self) -> bool:
        return self.total_market_value == 0.0


class PortfolioAggregator:
    """Folds positions into per-symbol and per-asset-class buckets.

    Every accumulated position adds to exactly one symbol bucket and exactly
    one class bucket, so the buckets of either kind always sum to the grand
    totals. The aggregator is not thread-safe; feed it from a single thread.

    Examples:
        >>> aggregator = PortfolioAggregator(ClassificationPolicy())
        >>> aggregator.accumulate_many(positions)
        >>> summary = aggregator.finalize()
    """

    def __init__(self, policy: ClassificationPolicy):
        self._policy = policy
        self._total = AggregateBucket()
        self._symbols: dict[str, AggregateBucket] = {}
        self._classes: dict[AssetClass, AggregateBucket] = {}

    @property
    def policy(self) -> ClassificationPolicy:
        return self._policy

    def __len__(self) -> int:
        return len(self._symbols)

    def accumulate(self, position: Position) -> None:
        cost = position.total_cost
        value = position.current_market_value
        asset_class = self._policy.classify(position.symbol)

        self._total.add(cost, value)
        self._symbols.setdefault(position.symbol, AggregateBucket()).add(cost, value)
        self._classes.setdefault(asset_class, AggregateBucket()).add(cost, value)

    def accumulate_many(self, positions: Iterable[Position]) -> None:
        for position in positions:
            self.accumulate(position)

    def finalize(self, strict: bool = True) -> PortfolioSummary:
        """Project the running totals into an immutable summary.

        Calling this repeatedly without accumulating in between returns equal
        summaries; the aggregator itself is left untouched.

        Args:
            strict: Raise on an empty portfolio instead of returning
                    a summary without percentages

        Raises:
            DivisionUndefined: If ``strict`` and the total market value is zero
        """
        total_value = self._total.total_market_value
        if total_value == 0.0:
            if strict:
                raise DivisionUndefined("Portfolio has no market value to allocate")
            logger.info("Portfolio has no market value; percentages unavailable")

        def percent(value: float) -> float | None:
            return value / total_value * 100.0 if total_value != 0.0 else None

        # sorted() is stable, so equal values keep insertion order
        symbols = tuple(
            SymbolAllocation(
                symbol=symbol,
                asset_class=self._policy.classify(symbol),
                total_cost=bucket.total_cost,
                total_market_value=bucket.total_market_value,
                percent=percent(bucket.total_market_value),
            )
            for symbol, bucket in sorted(
                self._symbols.items(), key=lambda item: item[1].total_market_value, reverse=True
            )
        )

        classes = []
        for asset_class, bucket in sorted(
            self._classes.items(), key=lambda item: item[1].total_market_value, reverse=True
        ):
            share = percent(bucket.total_market_value)
            classes.append(
                ClassAllocation(
                    asset_class=asset_class,
                    total_cost=bucket.total_cost,
                    total_market_value=bucket.total_market_value,
                    percent=share,
                    target_percent=self._policy.target_percent(asset_class),
                    band=None if share is None else self._policy.deviation_band(share, asset_class),
                )
            )

        return PortfolioSummary(
            total_cost=self._total.total_cost,
            total_market_value=total_value,
            symbols=symbols,
            classes=tuple(classes),
        )
