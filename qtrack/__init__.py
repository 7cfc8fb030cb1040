"""Questrade portfolio tracker.

This package provides:
- Refresh-token rotation backed by a pluggable credential store
- A thin HTTP client for the Questrade REST API
- Portfolio aggregation by symbol and asset class with rebalancing bands
"""

__all__ = ["errors", "data", "portfolio", "tracker"]
