"""Refresh-token rotation.

Questrade refresh tokens are single-use: exchanging one returns an access
token plus the *next* refresh token, and the submitted token is dead from
then on. The rotator therefore persists the next token before handing out
the access token. If that write fails, the account can only be recovered by
seeding a new token manually, so the failure is surfaced loudly.

State machine::

    UNINITIALIZED -> READING -> EXCHANGING -> COMMITTING -> READY
                       |            |              |
                       +------------+--------------+--> FAILED
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

from qtrack.core.storage.credentials import (
    CredentialConflictError,
    CredentialNotFoundError,
    CredentialStore,
    CredentialStoreError,
)
from qtrack.data.auth import exchange_token
from qtrack.data.models import SessionToken, TokenGrant
from qtrack.errors import CredentialError, QtrackError

logger = logging.getLogger(__name__)


class RotationState(Enum):
    UNINITIALIZED = "uninitialized"
    READING = "reading"
    EXCHANGING = "exchanging"
    COMMITTING = "committing"
    READY = "ready"
    FAILED = "failed"


def _mask(token: str) -> str:
    return f"{token[:4]}..." if len(token) > 4 else "..."


class TokenRotator:
    """Owns the credential rotation and the live SessionToken for one run.

    ``rotate()`` runs the state machine once. Afterwards ``session`` is the
    only way to reach the access token; nothing mutates it for the rest of
    the run.

    A failed commit (the store changed under us, or could not be written) does
    not take the session away: the access token was already issued and stays
    usable. The failure is kept on ``commit_error`` so the caller can report
    that the persisted token is now stale.

    Examples:
        >>> rotator = TokenRotator(FilesystemBackend("~/.config/qtrack/refresh_token.json"))
        >>> session = rotator.rotate()
        >>> client = QuestradeClient(session)
    """

    def __init__(
        self,
        store: CredentialStore,
        exchange: Callable[[str], TokenGrant] = exchange_token,
    ):
        self._store = store
        self._exchange = exchange
        self._state = RotationState.UNINITIALIZED
        self._session: SessionToken | None = None
        self._failure: QtrackError | None = None
        self._commit_error: CredentialError | None = None

    @property
    def state(self) -> RotationState:
        return self._state

    @property
    def failure(self) -> QtrackError | None:
        """Reason the rotator entered FAILED, if it did."""
        return self._failure

    @property
    def commit_error(self) -> CredentialError | None:
        """Error from persisting the next refresh token, if the commit failed."""
        return self._commit_error

    @property
    def session(self) -> SessionToken:
        """The live session token.

        Raises:
            CredentialError: If no access token has been obtained
        """
        if self._session is None:
            raise CredentialError(f"No session available (rotator is {self._state.value})")
        return self._session

    def _transition(self, state: RotationState) -> None:
        logger.debug(f"Token rotation: {self._state.value} -> {state.value}")
        self._state = state

    def _fail(self, error: QtrackError) -> None:
        logger.error(f"Token rotation failed during {self._state.value}: {error}")
        self._failure = error
        self._transition(RotationState.FAILED)

    def rotate(self) -> SessionToken:
        """Exchange the stored refresh token and commit the next one.

        Returns:
            The session token, including when only the commit failed

        Raises:
            CredentialError: If no token is stored, or rotate() was already called
            NetworkError: If the exchange request could not be sent
            AuthError: If the exchange was rejected (the stored token is untouched)
            ParseError: If the exchange response was malformed
        """
        if self._state is not RotationState.UNINITIALIZED:
            raise CredentialError(f"rotate() already ran (rotator is {self._state.value})")

        self._transition(RotationState.READING)
        try:
            old_token = self._store.read()
        except CredentialNotFoundError as e:
            error = CredentialError(f"No refresh token stored: {e}")
            self._fail(error)
            raise error from e
        except CredentialStoreError as e:
            error = CredentialError(f"Could not read refresh token: {e}")
            self._fail(error)
            raise error from e

        self._transition(RotationState.EXCHANGING)
        try:
            grant = self._exchange(old_token)
        except QtrackError as e:
            self._fail(e)
            raise

        self._session = SessionToken.from_grant(grant)

        self._transition(RotationState.COMMITTING)
        try:
            self._store.swap(old_token, grant.refresh_token)
        except CredentialConflictError as e:
            self._commit_error = CredentialError(
                f"Refresh token changed since it was read; next token "
                f"{_mask(grant.refresh_token)} was not saved: {e}"
            )
        except CredentialStoreError as e:
            self._commit_error = CredentialError(
                f"Could not save next refresh token {_mask(grant.refresh_token)}: {e}"
            )

        if self._commit_error is not None:
            self._fail(self._commit_error)
            return self._session

        self._transition(RotationState.READY)
        logger.info(
            f"Rotated refresh token {_mask(old_token)} -> {_mask(grant.refresh_token)}; "
            f"session valid until {self._session.expires_at.isoformat()}"
        )
        return self._session
