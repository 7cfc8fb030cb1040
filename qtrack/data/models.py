"""Typed records for Questrade API payloads.

Each record parses itself from the camelCase JSON the API returns. A missing
key or a non-numeric value raises ParseError; JSON ``null`` in a numeric
field is read as zero, which is how the API reports fields that do not apply
(e.g. ``closedQuantity`` on an open lot).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from qtrack.errors import ParseError


def _field(payload: dict[str, Any], key: str) -> Any:
    try:
        return payload[key]
    except (KeyError, TypeError) as e:
        raise ParseError(f"Missing field '{key}' in response payload") from e


def _number(payload: dict[str, Any], key: str) -> float:
    value = _field(payload, key)
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ParseError(f"Field '{key}' is not numeric: {value!r}") from e


def _integer(payload: dict[str, Any], key: str) -> int:
    value = _number(payload, key)
    try:
        return int(value)
    except (OverflowError, ValueError) as e:
        raise ParseError(f"Field '{key}' is not an integer: {value!r}") from e


def _text(payload: dict[str, Any], key: str) -> str:
    value = _field(payload, key)
    if not isinstance(value, str) or not value:
        raise ParseError(f"Field '{key}' is not a non-empty string: {value!r}")
    return value


def _items(payload: dict[str, Any], key: str) -> list[dict[str, Any]]:
    items = _field(payload, key)
    if not isinstance(items, list):
        raise ParseError(f"Field '{key}' is not a list")
    return items


@dataclass(frozen=True)
class TokenGrant:
    """Result of exchanging a refresh token at the OAuth2 endpoint."""

    access_token: str
    token_type: str
    expires_in: int
    refresh_token: str
    api_server: str

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> TokenGrant:
        return cls(
            access_token=_text(payload, "access_token"),
            token_type=str(payload.get("token_type") or "Bearer"),
            expires_in=_integer(payload, "expires_in"),
            refresh_token=_text(payload, "refresh_token"),
            api_server=_text(payload, "api_server"),
        )


@dataclass(frozen=True)
class SessionToken:
    """Short-lived credentials for one run. Held in memory only."""

    access_token: str
    api_server: str
    expires_at: datetime
    token_type: str = "Bearer"

    @classmethod
    def from_grant(cls, grant: TokenGrant, issued_at: datetime | None = None) -> SessionToken:
        issued_at = issued_at or datetime.now(UTC)
        api_server = grant.api_server if grant.api_server.endswith("/") else grant.api_server + "/"
        return cls(
            access_token=grant.access_token,
            api_server=api_server,
            expires_at=issued_at + timedelta(seconds=grant.expires_in),
            token_type=grant.token_type,
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(UTC)) >= self.expires_at

    def __repr__(self) -> str:
        return (
            f"SessionToken(access_token='{self.access_token[:6]}...', "
            f"api_server='{self.api_server}', expires_at={self.expires_at.isoformat()})"
        )


@dataclass(frozen=True)
class Account:
    id: str
    account_type: str

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> Account:
        return cls(id=str(_field(payload, "number")), account_type=str(_field(payload, "type")))

    def __str__(self) -> str:
        return f"Account: {self.account_type} - {self.id}"


@dataclass(frozen=True)
class Balance:
    currency: str
    cash: float
    market_value: float
    total_equity: float

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> Balance:
        return cls(
            currency=str(_field(payload, "currency")),
            cash=_number(payload, "cash"),
            market_value=_number(payload, "marketValue"),
            total_equity=_number(payload, "totalEquity"),
        )


@dataclass(frozen=True)
class Balances:
    """Per-currency and combined balances of one account."""

    per_currency: tuple[Balance, ...] = field(default_factory=tuple)
    combined: tuple[Balance, ...] = field(default_factory=tuple)

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> Balances:
        return cls(
            per_currency=tuple(
                Balance.from_json(b) for b in _items(payload, "perCurrencyBalances")
            ),
            combined=tuple(Balance.from_json(b) for b in _items(payload, "combinedBalances")),
        )

    def combined_in(self, currency: str = "CAD") -> Balance | None:
        """Return the combined balance expressed in ``currency``, if reported."""
        return next((b for b in self.combined if b.currency == currency), None)


@dataclass(frozen=True)
class Position:
    """A holding in one account.

    Closed lots report their realized figures in ``closed_quantity`` and
    ``closed_pnl``; when those are nonzero they take precedence over the
    open figures.
    """

    symbol: str
    symbol_id: int
    open_quantity: float = 0.0
    closed_quantity: float = 0.0
    average_entry_price: float = 0.0
    total_cost: float = 0.0
    current_price: float = 0.0
    current_market_value: float = 0.0
    open_pnl: float = 0.0
    closed_pnl: float = 0.0

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> Position:
        return cls(
            symbol=str(_field(payload, "symbol")),
            symbol_id=_integer(payload, "symbolId"),
            open_quantity=_number(payload, "openQuantity"),
            closed_quantity=_number(payload, "closedQuantity"),
            average_entry_price=_number(payload, "averageEntryPrice"),
            total_cost=_number(payload, "totalCost"),
            current_price=_number(payload, "currentPrice"),
            current_market_value=_number(payload, "currentMarketValue"),
            open_pnl=_number(payload, "openPnl"),
            closed_pnl=_number(payload, "closedPnl"),
        )

    @property
    def quantity(self) -> float:
        return self.closed_quantity if self.closed_quantity != 0.0 else self.open_quantity

    @property
    def pnl(self) -> float:
        return self.closed_pnl if self.closed_pnl != 0.0 else self.open_pnl


@dataclass(frozen=True)
class Symbol:
    """Instrument details used to annotate positions with dividend data."""

    symbol_id: int
    symbol: str
    dividend: float = 0.0
    yield_percent: float = 0.0

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> Symbol:
        return cls(
            symbol_id=_integer(payload, "symbolId"),
            symbol=str(_field(payload, "symbol")),
            dividend=_number(payload, "dividend"),
            yield_percent=_number(payload, "yield"),
        )
