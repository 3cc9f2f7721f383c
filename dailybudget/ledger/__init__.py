"""Mini README: Budget data model and owner-scoped ledger stores.

Exports the record types consumed by the allowance calculator and the
store implementations selected through ``STORE_BACKENDS``.
"""

from .models import BudgetConfig, LedgerSnapshot, Spending, Transaction
from .store import (
    STORE_BACKENDS,
    InMemoryLedgerStore,
    JsonFileLedgerStore,
    LedgerStore,
    StoreBackendRegistry,
)

__all__ = [
    "BudgetConfig",
    "InMemoryLedgerStore",
    "JsonFileLedgerStore",
    "LedgerSnapshot",
    "LedgerStore",
    "STORE_BACKENDS",
    "Spending",
    "StoreBackendRegistry",
    "Transaction",
]
