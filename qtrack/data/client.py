from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from qtrack.data.auth import build_auth_headers
from qtrack.data.models import Account, Balances, Position, SessionToken, Symbol
from qtrack.errors import AuthError, NetworkError, NotFound, ParseError

logger = logging.getLogger(__name__)


def _session_with_retries(
    total: int = 3, backoff: float = 0.5, pool_size: int = 10
) -> requests.Session:
    sess = requests.Session()
    retries = Retry(
        total=total,
        read=total,
        connect=total,
        backoff_factor=backoff,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET",),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retries, pool_connections=pool_size, pool_maxsize=pool_size)
    sess.mount("http://", adapter)
    sess.mount("https://", adapter)
    return sess


@dataclass
class QuestradeClient:
    """Read-only client for the Questrade REST API.

    The client is bound to one SessionToken for its lifetime and never
    refreshes it; a request made after the token expires fails with AuthError.
    It is safe to share between fetch workers.
    """

    session_token: SessionToken
    timeout: float = 30.0
    retries: int = 3
    pool_size: int = 10

    def __post_init__(self) -> None:
        self.session = _session_with_retries(total=self.retries, pool_size=self.pool_size)
        self.headers = build_auth_headers(self.session_token.access_token)

    def get(self, path: str, params: dict[str, Any] | None = None) -> requests.Response:
        url = f"{self.session_token.api_server}{path.lstrip('/')}"
        try:
            return self.session.get(
                url, params=params or {}, headers=self.headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise NetworkError(f"GET {path} failed: {e}") from e

    def get_json(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET ``path`` relative to the API server and decode the JSON body.

        Raises:
            NetworkError: On transport failure
            AuthError: On a non-2xx response, carrying the server's payload
            ParseError: If the body is not a JSON object
        """
        res = self.get(path, params=params)
        if not res.ok:
            raise AuthError(
                f"GET {path} failed: {res.status_code} {res.text}",
                status_code=res.status_code,
                body=res.text,
            )
        try:
            payload = res.json()
        except ValueError as e:
            raise ParseError(f"GET {path} returned non-JSON body: {e}") from e
        if not isinstance(payload, dict):
            raise ParseError(f"GET {path} returned {type(payload).__name__}, expected object")
        return payload

    def list_accounts(self) -> list[Account]:
        payload = self.get_json("v1/accounts")
        return [Account.from_json(item) for item in _list(payload, "accounts")]

    def get_balances(self, account_id: str) -> Balances:
        return Balances.from_json(self.get_json(f"v1/accounts/{account_id}/balances"))

    def list_positions(self, account_id: str) -> list[Position]:
        payload = self.get_json(f"v1/accounts/{account_id}/positions")
        return [Position.from_json(item) for item in _list(payload, "positions")]

    def get_symbol(self, symbol_id: int) -> Symbol:
        """Look up a single instrument.

        Raises:
            NotFound: If the API returns no symbol for ``symbol_id``
        """
        payload = self.get_json(f"v1/symbols/{symbol_id}")
        symbols = _list(payload, "symbols")
        if not symbols:
            raise NotFound(f"Symbol not found: {symbol_id}")
        return Symbol.from_json(symbols[0])

    def close(self) -> None:
        self.session.close()


def _list(payload: dict[str, Any], key: str) -> list[dict[str, Any]]:
    items = payload.get(key)
    if not isinstance(items, list):
        raise ParseError(f"Response is missing list '{key}'")
    return items
