"""
End-to-end load run over a store.
"""

import logging
from dataclasses import dataclass
from typing import Any

from sqlload.config import LoadConfig
from sqlload.store import Account, BaseStore

from .aggregator import LatencyAggregator
from .controller import RunController
from .summary import RunSummary
from .worker import TransactionWorker

logger = logging.getLogger(__name__)


@dataclass
class LoadRun:
    """Result of `run_load`: the summary plus the account state after the drain."""

    summary: RunSummary
    account: Account
    store_balance: float
    initial_balance: float
    drained: bool

    def to_dict(self) -> dict[str, Any]:
        report = self.summary.to_dict()
        report["account"] = {
            "id": self.account.id,
            "initial_balance": self.initial_balance,
            "cached_balance": self.account.cached_balance(),
            "store_balance": self.store_balance,
        }
        report["drained"] = self.drained
        return report


def prepare_account(store: BaseStore, config: LoadConfig, migrate: bool = True) -> Account:
    """
    Verify the store and fetch-or-create the shared account.

    Raises:
        StoreError: If the store is unreachable, the schema cannot be
            created, or the account cannot be established
    """
    store.ping()
    if migrate:
        store.migrate()

    account = store.first_or_create_account(config.account_email, config.account_nickname)
    logger.info(
        "Account ready",
        extra={"user_id": account.id, "initial_balance": account.balance},
    )
    return account


def run_load(config: LoadConfig, store: BaseStore, migrate: bool = True) -> LoadRun:
    """
    Prepare the account, run the load for `config.duration` seconds and drain.

    Startup failures propagate as StoreError; per-transaction failures only
    show up in the summary.
    """
    account = prepare_account(store, config, migrate=migrate)
    initial_balance = account.cached_balance()

    aggregator = LatencyAggregator()
    worker = TransactionWorker(store, account, aggregator, amount=config.amount)
    controller = RunController(config, worker, aggregator)

    summary = controller.run()
    drained = controller.drain(config.drain_timeout)
    store_balance = store.fetch_balance(account.id)

    logger.info(
        "Load finished",
        extra={**summary.to_log_fields(), "balance": store_balance},
    )

    return LoadRun(
        summary=summary,
        account=account,
        store_balance=store_balance,
        initial_balance=initial_balance,
        drained=drained,
    )
