from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from qtrack.data.models import Account, Balances, Position, SessionToken, Symbol, TokenGrant
from qtrack.errors import ParseError


class TestPosition:
    def test_from_json(self, sample_positions_data):
        position = Position.from_json(sample_positions_data["positions"][0])

        assert position.symbol == "XEQT.TO"
        assert position.symbol_id == 29251770
        assert position.total_cost == 2800.0
        assert position.current_market_value == 3050.0

    def test_null_numbers_read_as_zero(self, sample_positions_data):
        position = Position.from_json(sample_positions_data["positions"][1])

        assert position.closed_quantity == 0.0
        assert position.closed_pnl == 0.0

    def test_missing_field_raises_parse_error(self, sample_positions_data):
        payload = dict(sample_positions_data["positions"][0])
        del payload["totalCost"]

        with pytest.raises(ParseError, match="totalCost"):
            Position.from_json(payload)

    def test_non_numeric_field_raises_parse_error(self, sample_positions_data):
        payload = dict(sample_positions_data["positions"][0], currentPrice="n/a")

        with pytest.raises(ParseError, match="currentPrice"):
            Position.from_json(payload)

    def test_open_quantity_used_when_nothing_closed(self):
        position = Position("AAPL", 8049, open_quantity=10, closed_quantity=0)
        assert position.quantity == 10

    def test_closed_quantity_overrides_open(self):
        position = Position("AAPL", 8049, open_quantity=10, closed_quantity=5)
        assert position.quantity == 5

    def test_pnl_follows_same_override(self):
        assert Position("AAPL", 8049, open_pnl=12.5, closed_pnl=0).pnl == 12.5
        assert Position("AAPL", 8049, open_pnl=12.5, closed_pnl=-3.0).pnl == -3.0


class TestAccountAndBalances:
    def test_account_from_json(self):
        account = Account.from_json({"type": "TFSA", "number": "26598145"})

        assert account.id == "26598145"
        assert account.account_type == "TFSA"
        assert str(account) == "Account: TFSA - 26598145"

    def test_combined_in_unknown_currency(self, sample_balances_data):
        balances = Balances.from_json(sample_balances_data)

        assert balances.combined_in("EUR") is None
        assert balances.combined_in("USD").market_value == 4425.1

    def test_balances_require_lists(self):
        with pytest.raises(ParseError, match="perCurrencyBalances"):
            Balances.from_json({"perCurrencyBalances": None, "combinedBalances": []})


class TestSymbol:
    def test_from_json(self):
        symbol = Symbol.from_json(
            {"symbol": "XEQT.TO", "symbolId": 29251770, "dividend": None, "yield": 1.7}
        )

        assert symbol == Symbol(symbol_id=29251770, symbol="XEQT.TO", dividend=0.0, yield_percent=1.7)

    @pytest.mark.parametrize("symbol_id", [float("nan"), float("inf"), "inf"])
    def test_non_finite_symbol_id_raises_parse_error(self, symbol_id):
        with pytest.raises(ParseError, match="symbolId"):
            Symbol.from_json({"symbol": "XEQT.TO", "symbolId": symbol_id, "dividend": 0, "yield": 0})


class TestTokenGrant:
    @pytest.fixture
    def payload(self):
        return {
            "access_token": "acc",
            "token_type": "Bearer",
            "expires_in": 1800,
            "refresh_token": "next",
            "api_server": "https://api05.iq.questrade.com/",
        }

    def test_from_json(self, payload):
        grant = TokenGrant.from_json(payload)

        assert grant == TokenGrant("acc", "Bearer", 1800, "next", "https://api05.iq.questrade.com/")

    @pytest.mark.parametrize("key", ["access_token", "refresh_token", "api_server"])
    @pytest.mark.parametrize("value", [None, "", 12345])
    def test_null_or_non_string_token_fields_rejected(self, payload, key, value):
        payload[key] = value

        with pytest.raises(ParseError, match=key):
            TokenGrant.from_json(payload)

    def test_non_finite_expiry_rejected(self, payload):
        payload["expires_in"] = float("inf")

        with pytest.raises(ParseError, match="expires_in"):
            TokenGrant.from_json(payload)


class TestSessionToken:
    def test_from_grant_computes_expiry(self):
        grant = TokenGrant("acc", "Bearer", 1800, "next", "https://api05.iq.questrade.com")
        issued = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

        session = SessionToken.from_grant(grant, issued_at=issued)

        assert session.expires_at == issued + timedelta(seconds=1800)
        assert session.api_server == "https://api05.iq.questrade.com/"
        assert not session.is_expired(issued + timedelta(seconds=1799))
        assert session.is_expired(issued + timedelta(seconds=1800))

    def test_repr_masks_access_token(self, session_token):
        assert "access_123" not in repr(session_token)
