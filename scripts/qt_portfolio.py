#!/usr/bin/env python
"""Show Questrade accounts, positions and the portfolio allocation summary.

Each invocation rotates the stored refresh token once, so the token in the
configured credential backend must be the latest one issued by Questrade.
Use --interactive to browse several views from a single fetch instead of
spending a token per view.

Exit status: 0 on success, 1 if the run could not start (credential or
authentication failure), 2 if the report was shown but the next refresh token
could not be saved.
"""

from __future__ import annotations

import argparse
import logging

import polars as pl

from qtrack.core.storage import BackendConfigError, BackendNotFoundError, CredentialStoreError
from qtrack.errors import QtrackError
from qtrack.portfolio.report import (
    balances_frame,
    class_allocation_frame,
    positions_frame,
    symbol_allocation_frame,
)
from qtrack.tracker import AssetTracker, TrackerReport

logger = logging.getLogger(__name__)

VIEWS = ("home", "accounts", "positions", "summary")


def _title(text: str) -> None:
    print(f"\n{'-' * 20} {text} {'-' * 20}")


def show_accounts(report: TrackerReport, with_positions: bool = False) -> None:
    for account in report.accounts:
        _title(str(account))
        print(balances_frame(report.balances[account.id]))
        if with_positions:
            print(positions_frame(report.positions[account.id], report.symbols))


def show_positions(report: TrackerReport) -> None:
    _title("Positions")
    frame = positions_frame(report.all_positions(), report.symbols)
    print(frame)
    print(
        f"Total book cost {frame['Book Cost'].sum():.2f} | "
        f"market value {frame['Market Value'].sum():.2f}"
    )


def show_summary(report: TrackerReport) -> None:
    summary = report.summary
    _title("Portfolio Summary")
    if summary.is_empty:
        print("No market value to allocate; percentages unavailable.")
    print(symbol_allocation_frame(summary))
    print(class_allocation_frame(summary))
    print(
        f"Total book cost {summary.total_cost:.2f} | market value "
        f"{summary.total_market_value:.2f} | P&L {summary.total_pnl:.2f}"
    )


def render(report: TrackerReport, view: str) -> None:
    if view == "home":
        show_accounts(report, with_positions=True)
        show_summary(report)
    elif view == "accounts":
        show_accounts(report)
    elif view == "positions":
        show_positions(report)
    else:
        show_summary(report)


def interact(report: TrackerReport) -> None:
    """Serve views from one fetched report until the user quits."""
    prompt = f"View ({', '.join(VIEWS)}, quit): "
    while True:
        try:
            choice = input(prompt).strip().lower()
        except EOFError:
            break
        if choice in ("quit", "exit", "q"):
            break
        if choice not in VIEWS:
            print(f"Unknown view: {choice!r}")
            continue
        render(report, choice)


def main() -> int:
    parser = argparse.ArgumentParser(description="Track Questrade assets")
    parser.add_argument(
        "view",
        nargs="?",
        choices=VIEWS,
        default="home",
        help="What to display (default: home = accounts, positions and summary)",
    )
    parser.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="After the first view, keep serving views from the same fetch",
    )
    parser.add_argument(
        "--backend",
        default=None,
        help="Credential backend name (defaults to $QTRACK_CREDENTIAL_BACKEND or filesystem)",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="Concurrent account fetches (defaults to $QTRACK_MAX_WORKERS or 4)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        tracker = AssetTracker.from_config(backend=args.backend, max_workers=args.max_workers)
        report = tracker.run()
    except (QtrackError, CredentialStoreError, BackendConfigError, BackendNotFoundError) as e:
        logger.error(f"Run aborted: {type(e).__name__}: {e}")
        return 1

    pl.Config.set_tbl_rows(-1)
    pl.Config.set_float_precision(2)

    render(report, args.view)
    if args.interactive:
        interact(report)

    for failure in report.failures:
        logger.warning(f"Not included: {failure}")

    if report.commit_error is not None:
        logger.error(f"Refresh token was not saved: {report.commit_error}")
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
