"""Concurrent collection of per-account data."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol

from qtrack.data.models import Account, Balances, Position, Symbol
from qtrack.errors import QtrackError

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


class AccountDataSource(Protocol):
    def get_balances(self, account_id: str) -> Balances: ...

    def list_positions(self, account_id: str) -> list[Position]: ...

    def get_symbol(self, symbol_id: int) -> Symbol: ...


@dataclass(frozen=True)
class AccountSnapshot:
    """Everything fetched for one account."""

    account: Account
    balances: Balances
    positions: tuple[Position, ...]


@dataclass(frozen=True)
class AccountFailure:
    """An account whose data could not be fetched, and why."""

    account: Account
    error: QtrackError

    def __str__(self) -> str:
        return f"{self.account}: {type(self.error).__name__}: {self.error}"


class SymbolDirectory:
    """symbol_id -> Symbol map that looks up each id at most once.

    The first caller for an id installs a Future under the lock and performs
    the lookup; concurrent callers for the same id wait on that Future. A
    failed lookup is cached too, so every account holding the symbol sees the
    same error. Once resolved, an id's mapping never changes.
    """

    def __init__(self, source: AccountDataSource):
        self._source = source
        self._lock = threading.Lock()
        self._futures: dict[int, Future[Symbol]] = {}

    def get(self, symbol_id: int) -> Symbol:
        with self._lock:
            future = self._futures.get(symbol_id)
            owner = future is None
            if owner:
                future = Future()
                self._futures[symbol_id] = future

        if owner:
            try:
                future.set_result(self._source.get_symbol(symbol_id))
                logger.debug(f"Resolved symbol {symbol_id}")
            except Exception as e:
                # Waiters on this id must be released whatever the lookup raised
                future.set_exception(e)

        return future.result()

    def resolved(self) -> dict[int, Symbol]:
        """Successfully resolved symbols, keyed by symbol_id."""
        with self._lock:
            futures = list(self._futures.items())
        return {
            symbol_id: future.result()
            for symbol_id, future in futures
            if future.done() and future.exception() is None
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._futures)


def fetch_account(
    source: AccountDataSource, account: Account, symbols: SymbolDirectory
) -> AccountSnapshot:
    """Fetch balances, positions and position symbols for one account.

    Raises:
        QtrackError: If any request for this account fails
    """
    balances = source.get_balances(account.id)
    positions = tuple(source.list_positions(account.id))
    for position in positions:
        symbols.get(position.symbol_id)
    logger.info(f"Fetched {len(positions)} positions for account {account.id}")
    return AccountSnapshot(account=account, balances=balances, positions=positions)


def collect_accounts(
    source: AccountDataSource,
    accounts: list[Account],
    symbols: SymbolDirectory | None = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> tuple[list[AccountSnapshot], list[AccountFailure], dict[int, Symbol]]:
    """Fetch all accounts on a bounded worker pool.

    A failure in one account is logged and reported as an AccountFailure; the
    remaining accounts are unaffected. Results come back in the order of
    ``accounts`` regardless of completion order.

    Args:
        source: Authenticated data source (normally a QuestradeClient)
        accounts: Accounts to fetch
        symbols: Shared symbol directory; a new one is created if omitted
        max_workers: Upper bound on concurrent account fetches

    Returns:
        Tuple of (snapshots, failures, resolved symbol map)
    """
    if symbols is None:
        symbols = SymbolDirectory(source)
    snapshots: list[AccountSnapshot] = []
    failures: list[AccountFailure] = []

    if not accounts:
        return snapshots, failures, symbols.resolved()

    workers = max(1, min(max_workers, len(accounts)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="qtrack-fetch") as pool:
        futures = [
            (account, pool.submit(fetch_account, source, account, symbols))
            for account in accounts
        ]
        for account, future in futures:
            try:
                snapshots.append(future.result())
            except QtrackError as e:
                logger.warning(f"Skipping account {account.id}: {type(e).__name__}: {e}")
                failures.append(AccountFailure(account=account, error=e))

    return snapshots, failures, symbols.resolved()
