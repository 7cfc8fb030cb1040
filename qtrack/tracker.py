"""One end-to-end run: rotate credentials, fetch accounts, summarize."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from qtrack.core.storage.credentials import CredentialStore
from qtrack.core.storage.registry import CredentialBackendRegistry
from qtrack.core.utils.env import env_int
from qtrack.data.auth import exchange_token
from qtrack.data.client import QuestradeClient
from qtrack.data.collect import DEFAULT_MAX_WORKERS, AccountFailure, collect_accounts
from qtrack.data.models import Account, Balances, Position, SessionToken, Symbol, TokenGrant
from qtrack.data.rotator import TokenRotator
from qtrack.errors import CredentialError, DivisionUndefined
from qtrack.portfolio.aggregator import PortfolioAggregator, PortfolioSummary
from qtrack.portfolio.classification import ClassificationPolicy, load_policy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackerReport:
    """Everything a presentation layer needs from one run."""

    accounts: tuple[Account, ...]
    balances: dict[str, Balances]
    positions: dict[str, tuple[Position, ...]]
    symbols: dict[int, Symbol]
    summary: PortfolioSummary
    failures: tuple[AccountFailure, ...] = field(default_factory=tuple)
    commit_error: CredentialError | None = None

    def all_positions(self) -> list[Position]:
        """Positions of every fetched account, in account order."""
        return [p for account in self.accounts for p in self.positions.get(account.id, ())]


class AssetTracker:
    """Runs the tracker against a credential store.

    Rotation completes (including the attempt to persist the next refresh
    token) before the first data request is made. Rotation errors abort the
    run; per-account fetch errors only drop that account from the summary.

    Examples:
        >>> tracker = AssetTracker.from_config()
        >>> report = tracker.run()
        >>> report.summary.total_market_value
    """

    def __init__(
        self,
        store: CredentialStore,
        policy: ClassificationPolicy | None = None,
        exchange: Callable[[str], TokenGrant] = exchange_token,
        client_factory: Callable[[SessionToken], QuestradeClient] = QuestradeClient,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        self._store = store
        self._policy = policy or ClassificationPolicy()
        self._exchange = exchange
        self._client_factory = client_factory
        self._max_workers = max_workers

    @classmethod
    def from_config(
        cls,
        backend: str | None = None,
        policy_module: str = "configs.portfolio",
        max_workers: int | None = None,
    ) -> AssetTracker:
        """Build a tracker from the credential backend and portfolio config modules."""
        store = CredentialBackendRegistry().get_backend(backend)
        return cls(
            store=store,
            policy=load_policy(policy_module),
            max_workers=max_workers or env_int("QTRACK_MAX_WORKERS", DEFAULT_MAX_WORKERS),
        )

    def run(self) -> TrackerReport:
        """Execute one run.

        Raises:
            CredentialError: If no refresh token can be read
            NetworkError, AuthError, ParseError: If the token exchange or the
                account listing fails
        """
        rotator = TokenRotator(self._store, exchange=self._exchange)
        session = rotator.rotate()
        if rotator.commit_error is not None:
            logger.warning(
                "Continuing with the current session, but the stored refresh token is "
                f"stale and must be re-seeded before the next run: {rotator.commit_error}"
            )

        client = self._client_factory(session)
        try:
            accounts = client.list_accounts()
            logger.info(f"Found {len(accounts)} accounts")
            snapshots, failures, symbols = collect_accounts(
                client, accounts, max_workers=self._max_workers
            )
        finally:
            client.close()

        aggregator = PortfolioAggregator(self._policy)
        for snapshot in snapshots:
            aggregator.accumulate_many(snapshot.positions)

        try:
            summary = aggregator.finalize()
        except DivisionUndefined as e:
            logger.warning(f"{e}; reporting summary without percentages")
            summary = aggregator.finalize(strict=False)

        if failures:
            logger.warning(f"Summary excludes {len(failures)} of {len(accounts)} accounts")

        return TrackerReport(
            accounts=tuple(s.account for s in snapshots),
            balances={s.account.id: s.balances for s in snapshots},
            positions={s.account.id: s.positions for s in snapshots},
            symbols=symbols,
            summary=summary,
            failures=tuple(failures),
            commit_error=rotator.commit_error,
        )
