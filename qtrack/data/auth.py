from __future__ import annotations

import logging

import requests

from qtrack.data.models import TokenGrant
from qtrack.errors import AuthError, NetworkError, ParseError

logger = logging.getLogger(__name__)

LOGIN_URL = "https://login.questrade.com/oauth2/token"


def exchange_token(
    refresh_token: str, login_url: str = LOGIN_URL, timeout: float = 30.0
) -> TokenGrant:
    """Exchange a refresh token for an access token and the next refresh token.

    Questrade's OAuth2 endpoint takes
    ``?grant_type=refresh_token&refresh_token=<token>`` and answers with
    ``access_token``, ``api_server``, ``expires_in`` and a new
    ``refresh_token``. The submitted token is burned by a successful call, so
    this request is deliberately sent without transport retries.

    Raises:
        NetworkError: If the request fails before a response arrives
        AuthError: If the endpoint answers with a non-2xx status
        ParseError: If the body is not the expected JSON document
    """
    params = {"grant_type": "refresh_token", "refresh_token": refresh_token}
    try:
        res = requests.get(login_url, params=params, timeout=timeout)
    except requests.RequestException as e:
        raise NetworkError(f"Token exchange request failed: {e}") from e

    if not res.ok:
        detail = res.text
        raise AuthError(
            f"Token exchange failed: {res.status_code} {detail}",
            status_code=res.status_code,
            body=detail,
        )

    try:
        payload = res.json()
    except ValueError as e:
        raise ParseError(f"Token exchange returned non-JSON body: {e}") from e
    if not isinstance(payload, dict):
        raise ParseError("Token exchange returned an unexpected JSON document")

    grant = TokenGrant.from_json(payload)
    logger.debug(f"Obtained access token for {grant.api_server} (expires in {grant.expires_in}s)")
    return grant


def build_auth_headers(access_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}
