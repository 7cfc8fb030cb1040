"""Tabular views of a tracker run for presentation.

Every function returns a polars DataFrame with display-ready column names.
Values are left unrounded; formatting belongs to whoever prints the frame.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

import polars as pl

from qtrack.data.models import Balances, Position, Symbol
from qtrack.portfolio.aggregator import PortfolioSummary


def symbol_allocation_frame(summary: PortfolioSummary) -> pl.DataFrame:
    """One row per symbol, largest market value first."""
    return pl.DataFrame(
        {
            "Symbol": [a.symbol for a in summary.symbols],
            "Asset": [a.asset_class.label for a in summary.symbols],
            "Book Cost": [a.total_cost for a in summary.symbols],
            "Market Value": [a.total_market_value for a in summary.symbols],
            "Percent": [a.percent for a in summary.symbols],
        },
        schema={
            "Symbol": pl.Utf8,
            "Asset": pl.Utf8,
            "Book Cost": pl.Float64,
            "Market Value": pl.Float64,
            "Percent": pl.Float64,
        },
    )


def class_allocation_frame(summary: PortfolioSummary) -> pl.DataFrame:
    """One row per asset class with its target and deviation band."""
    return pl.DataFrame(
        {
            "Asset": [a.asset_class.label for a in summary.classes],
            "Book Cost": [a.total_cost for a in summary.classes],
            "Market Value": [a.total_market_value for a in summary.classes],
            "Percent": [a.percent for a in summary.classes],
            "Target": [a.target_percent for a in summary.classes],
            "Band": [a.band.value if a.band else None for a in summary.classes],
        },
        schema={
            "Asset": pl.Utf8,
            "Book Cost": pl.Float64,
            "Market Value": pl.Float64,
            "Percent": pl.Float64,
            "Target": pl.Float64,
            "Band": pl.Utf8,
        },
    )


def positions_frame(
    positions: Iterable[Position], symbols: Mapping[int, Symbol] | None = None
) -> pl.DataFrame:
    """Positions annotated with dividend and yield from the symbol map.

    Quantity and P&L use the closed-over-open override. Positions whose
    symbol was not resolved show zero dividend and yield.
    """
    symbols = symbols or {}
    rows = []
    for position in positions:
        symbol = symbols.get(position.symbol_id)
        rows.append(
            {
                "Symbol": position.symbol,
                "Quantity": position.quantity,
                "Avg Price": position.average_entry_price,
                "Book Cost": position.total_cost,
                "Market Price": position.current_price,
                "Market Value": position.current_market_value,
                "Dividend": symbol.dividend if symbol else 0.0,
                "Yield": symbol.yield_percent if symbol else 0.0,
                "P&L": position.pnl,
            }
        )

    schema = {
        "Symbol": pl.Utf8,
        "Quantity": pl.Float64,
        "Avg Price": pl.Float64,
        "Book Cost": pl.Float64,
        "Market Price": pl.Float64,
        "Market Value": pl.Float64,
        "Dividend": pl.Float64,
        "Yield": pl.Float64,
        "P&L": pl.Float64,
    }
    return pl.DataFrame(rows, schema=schema)


def balances_frame(balances: Balances, combined_currency: str = "CAD") -> pl.DataFrame:
    """Per-currency balances followed by a "Combined" row when available."""
    rows = [
        {
            "Currency": b.currency,
            "Cash": b.cash,
            "Market Value": b.market_value,
            "Total Equity": b.total_equity,
        }
        for b in balances.per_currency
    ]
    combined = balances.combined_in(combined_currency)
    if combined is not None:
        rows.append(
            {
                "Currency": "Combined",
                "Cash": combined.cash,
                "Market Value": combined.market_value,
                "Total Equity": combined.total_equity,
            }
        )

    schema = {
        "Currency": pl.Utf8,
        "Cash": pl.Float64,
        "Market Value": pl.Float64,
        "Total Equity": pl.Float64,
    }
    return pl.DataFrame(rows, schema=schema)
