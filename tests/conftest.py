from __future__ import annotations

import json
from datetime import UTC, datetime
from unittest.mock import Mock

import pytest

from qtrack.core.storage.backends import FilesystemBackend
from qtrack.data.models import Position, SessionToken, TokenGrant


@pytest.fixture
def token_store(tmp_path):
    """Filesystem credential store seeded with "tokA"."""
    path = tmp_path / "refresh_token.json"
    path.write_text(json.dumps({"refresh_token": "tokA"}))
    return FilesystemBackend(path=path)


@pytest.fixture
def grant():
    """Exchange result that rotates to "tokB"."""
    return TokenGrant(
        access_token="access_123",
        token_type="Bearer",
        expires_in=1800,
        refresh_token="tokB",
        api_server="https://api01.iq.questrade.com/",
    )


@pytest.fixture
def session_token():
    return SessionToken(
        access_token="access_123",
        api_server="https://api01.iq.questrade.com/",
        expires_at=datetime(2030, 1, 1, tzinfo=UTC),
    )


@pytest.fixture
def mock_token_response():
    """Mock a successful Questrade OAuth2 token response."""
    mock_response = Mock()
    mock_response.ok = True
    mock_response.status_code = 200
    mock_response.json.return_value = {
        "access_token": "C3lTUKuNQrAAmSD/TPjuV/HI7aNrAwDp",
        "token_type": "Bearer",
        "expires_in": 300,
        "refresh_token": "aSBe7wAAdx88QTbwut0tiu3SYic3ox8F",
        "api_server": "https://api01.iq.questrade.com/",
    }
    return mock_response


@pytest.fixture
def sample_accounts_data():
    return {
        "accounts": [
            {"type": "TFSA", "number": "26598145", "status": "Active", "isPrimary": True},
            {"type": "RRSP", "number": "26598146", "status": "Active", "isPrimary": False},
        ],
        "userId": 3000124,
    }


@pytest.fixture
def sample_balances_data():
    return {
        "perCurrencyBalances": [
            {"currency": "CAD", "cash": 243.97, "marketValue": 6017.0, "totalEquity": 6260.97},
            {"currency": "USD", "cash": 198.29, "marketValue": 0.0, "totalEquity": 198.29},
        ],
        "combinedBalances": [
            {"currency": "CAD", "cash": 515.01, "marketValue": 6017.0, "totalEquity": 6532.01},
            {"currency": "USD", "cash": 378.87, "marketValue": 4425.1, "totalEquity": 4803.97},
        ],
    }


@pytest.fixture
def sample_positions_data():
    return {
        "positions": [
            {
                "symbol": "XEQT.TO",
                "symbolId": 29251770,
                "openQuantity": 100,
                "closedQuantity": 0,
                "currentMarketValue": 3050.0,
                "currentPrice": 30.5,
                "averageEntryPrice": 28.0,
                "closedPnl": 0,
                "openPnl": 250.0,
                "totalCost": 2800.0,
                "isRealTime": False,
                "isUnderReorg": False,
            },
            {
                "symbol": "ZAG.TO",
                "symbolId": 2066284,
                "openQuantity": 200,
                "closedQuantity": None,
                "currentMarketValue": 2967.0,
                "currentPrice": 14.835,
                "averageEntryPrice": 15.1,
                "closedPnl": None,
                "openPnl": -53.0,
                "totalCost": 3020.0,
                "isRealTime": False,
                "isUnderReorg": False,
            },
        ]
    }


@pytest.fixture
def make_position():
    """Factory for positions carrying just the fields aggregation reads."""

    def _make(symbol: str, cost: float, value: float, symbol_id: int = 0) -> Position:
        return Position(
            symbol=symbol, symbol_id=symbol_id, total_cost=cost, current_market_value=value
        )

    return _make
