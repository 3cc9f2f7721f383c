"""Mini README: Ledger stores holding configs, transactions and spendings.

Structure:
    * LedgerStore - abstract, owner-scoped contract used by the web layer.
    * InMemoryLedgerStore - per-owner indexed dictionaries behind a lock.
    * JsonFileLedgerStore - in-memory store persisted to one JSON document.
    * StoreBackendRegistry / STORE_BACKENDS - pick a backend by name.

Every operation takes the owner explicitly and only ever touches that
owner's records. Writes build a fresh per-owner collection and swap it in,
so a concurrent reader sees either the old or the new collection and never
a half-written one. Deleting a record that exists but belongs to somebody
else reports ``RecordNotFound`` exactly like a missing record.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional
from uuid import uuid4

from ..configuration import DailyBudgetSettings
from ..errors import RecordNotFound
from ..logging_utils import get_logger
from ..utils import read_json_document, write_json_atomic
from .models import BudgetConfig, LedgerSnapshot, Spending, Transaction

LOGGER = get_logger(__name__)


class LedgerStore(ABC):
    """Owner-scoped persistence contract for budget data."""

    backend_name: str = "abstract"

    @abstractmethod
    def get_config(self, owner: str) -> Optional[BudgetConfig]:
        """Return the owner's budget config, or ``None`` when unset."""

    @abstractmethod
    def upsert_config(self, owner: str, config: BudgetConfig) -> None:
        """Replace the owner's config wholesale."""

    @abstractmethod
    def add_transaction(self, owner: str, fields: Mapping[str, object]) -> str:
        """Validate and store a transaction, returning its new identifier."""

    @abstractmethod
    def list_transactions(self, owner: str) -> List[Transaction]:
        """Return every transaction owned by ``owner``."""

    @abstractmethod
    def delete_transaction(self, owner: str, transaction_id: str) -> None:
        """Delete a transaction or raise ``RecordNotFound``."""

    @abstractmethod
    def add_spending(self, owner: str, fields: Mapping[str, object]) -> str:
        """Validate and store a spending, returning its new identifier."""

    @abstractmethod
    def list_spendings(self, owner: str) -> List[Spending]:
        """Return every spending owned by ``owner``."""

    @abstractmethod
    def delete_spending(self, owner: str, spending_id: str) -> None:
        """Delete a spending or raise ``RecordNotFound``."""

    def snapshot(self, owner: str) -> LedgerSnapshot:
        """Load config and all records for one allowance computation."""

        return LedgerSnapshot(
            owner=owner,
            config=self.get_config(owner),
            transactions=self.list_transactions(owner),
            spendings=self.list_spendings(owner),
        )


class InMemoryLedgerStore(LedgerStore):
    """Keep the whole dataset in process memory, indexed by owner."""

    backend_name = "memory"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._configs: Dict[str, BudgetConfig] = {}
        self._transactions: Dict[str, Dict[str, Transaction]] = {}
        self._spendings: Dict[str, Dict[str, Spending]] = {}

    @staticmethod
    def _new_id() -> str:
        return uuid4().hex

    def _persist(
        self,
        configs: Dict[str, BudgetConfig],
        transactions: Dict[str, Dict[str, Transaction]],
        spendings: Dict[str, Dict[str, Spending]],
    ) -> None:
        """Hook receiving the candidate dataset before it replaces the current one."""

    def _commit(
        self,
        *,
        configs: Optional[Dict[str, BudgetConfig]] = None,
        transactions: Optional[Dict[str, Dict[str, Transaction]]] = None,
        spendings: Optional[Dict[str, Dict[str, Spending]]] = None,
    ) -> None:
        """Persist the candidate state, then swap it in; must hold the lock."""

        configs = self._configs if configs is None else configs
        transactions = self._transactions if transactions is None else transactions
        spendings = self._spendings if spendings is None else spendings
        self._persist(configs, transactions, spendings)
        self._configs = configs
        self._transactions = transactions
        self._spendings = spendings

    def get_config(self, owner: str) -> Optional[BudgetConfig]:
        return self._configs.get(owner)

    def upsert_config(self, owner: str, config: BudgetConfig) -> None:
        with self._lock:
            configs = dict(self._configs)
            configs[owner] = config
            self._commit(configs=configs)
        LOGGER.info("Saved budget config for owner %s", owner)

    def add_transaction(self, owner: str, fields: Mapping[str, object]) -> str:
        transaction = Transaction.from_fields(self._new_id(), owner, fields)
        with self._lock:
            self._commit(
                transactions=_with_record(
                    self._transactions, owner, transaction.transaction_id, transaction
                )
            )
        LOGGER.debug("Stored transaction %s for owner %s", transaction.transaction_id, owner)
        return transaction.transaction_id

    def list_transactions(self, owner: str) -> List[Transaction]:
        return list(self._transactions.get(owner, {}).values())

    def delete_transaction(self, owner: str, transaction_id: str) -> None:
        with self._lock:
            self._commit(
                transactions=_without_record(
                    self._transactions, owner, transaction_id, "Transaction"
                )
            )
        LOGGER.info("Deleted transaction %s for owner %s", transaction_id, owner)

    def add_spending(self, owner: str, fields: Mapping[str, object]) -> str:
        spending = Spending.from_fields(self._new_id(), owner, fields)
        with self._lock:
            self._commit(
                spendings=_with_record(self._spendings, owner, spending.spending_id, spending)
            )
        LOGGER.debug("Stored spending %s for owner %s", spending.spending_id, owner)
        return spending.spending_id

    def list_spendings(self, owner: str) -> List[Spending]:
        return list(self._spendings.get(owner, {}).values())

    def delete_spending(self, owner: str, spending_id: str) -> None:
        with self._lock:
            self._commit(
                spendings=_without_record(self._spendings, owner, spending_id, "Spending")
            )
        LOGGER.info("Deleted spending %s for owner %s", spending_id, owner)


def _with_record(index: Dict[str, Dict[str, Any]], owner: str, record_id: str, record: Any) -> Dict[str, Dict[str, Any]]:
    """Return a copy of ``index`` with ``record`` added to the owner's bucket."""

    bucket = dict(index.get(owner, {}))
    bucket[record_id] = record
    updated = dict(index)
    updated[owner] = bucket
    return updated


def _without_record(index: Dict[str, Dict[str, Any]], owner: str, record_id: str, kind: str) -> Dict[str, Dict[str, Any]]:
    """Return a copy of ``index`` without the owner's record, or raise."""

    bucket = index.get(owner, {})
    if record_id not in bucket:
        raise RecordNotFound(kind, record_id)
    bucket = {key: value for key, value in bucket.items() if key != record_id}
    updated = dict(index)
    updated[owner] = bucket
    return updated


class JsonFileLedgerStore(InMemoryLedgerStore):
    """In-memory store rewritten wholesale to a JSON document on each write.

    The document is written to a temporary file in the target directory and
    moved over the old one with ``os.replace``, so the file on disk is always
    either the previous or the new complete dataset.
    """

    backend_name = "file"

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            self._load()
        LOGGER.debug(
            "JSON ledger store at %s holds %s owners", self.path, len(self._owners())
        )

    def _owners(self) -> set:
        return set(self._configs) | set(self._transactions) | set(self._spendings)

    def _load(self) -> None:
        document = read_json_document(self.path)
        self._configs = {
            owner: _config_from_json(payload)
            for owner, payload in document.get("configs", {}).items()
        }
        self._transactions = _index_by_owner(
            (_transaction_from_json(payload) for payload in document.get("transactions", [])),
            lambda record: record.transaction_id,
        )
        self._spendings = _index_by_owner(
            (_spending_from_json(payload) for payload in document.get("spendings", [])),
            lambda record: record.spending_id,
        )
        LOGGER.info("Loaded ledger document %s", self.path)

    def _persist(
        self,
        configs: Dict[str, BudgetConfig],
        transactions: Dict[str, Dict[str, Transaction]],
        spendings: Dict[str, Dict[str, Spending]],
    ) -> None:
        document = {
            "configs": {owner: _config_to_json(config) for owner, config in configs.items()},
            "transactions": [
                _transaction_to_json(record)
                for bucket in transactions.values()
                for record in bucket.values()
            ],
            "spendings": [
                _spending_to_json(record)
                for bucket in spendings.values()
                for record in bucket.values()
            ],
        }
        write_json_atomic(self.path, document)


def _index_by_owner(records: Iterable[Any], key: Callable[[Any], str]) -> Dict[str, Dict[str, Any]]:
    index: Dict[str, Dict[str, Any]] = {}
    for record in records:
        index.setdefault(record.owner, {})[key(record)] = record
    return index


def _optional_iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _config_to_json(config: BudgetConfig) -> Dict[str, str]:
    return {
        "start_money": str(config.start_money),
        "start_date": config.start_date.isoformat(),
        "end_money": str(config.end_money),
        "end_date": config.end_date.isoformat(),
    }


def _config_from_json(payload: Mapping[str, Any]) -> BudgetConfig:
    return BudgetConfig(
        start_money=Decimal(payload["start_money"]),
        start_date=date.fromisoformat(payload["start_date"]),
        end_money=Decimal(payload["end_money"]),
        end_date=date.fromisoformat(payload["end_date"]),
    )


def _transaction_to_json(record: Transaction) -> Dict[str, Any]:
    return {
        "id": record.transaction_id,
        "owner": record.owner,
        "amount": str(record.amount),
        "is_income": record.is_income,
        "description": record.description,
        "category": record.category,
        "occurred_on": _optional_iso(record.occurred_on),
        "metadata": dict(record.metadata),
    }


def _transaction_from_json(payload: Mapping[str, Any]) -> Transaction:
    occurred_on = payload.get("occurred_on")
    return Transaction(
        transaction_id=payload["id"],
        owner=payload["owner"],
        amount=Decimal(payload["amount"]),
        is_income=bool(payload["is_income"]),
        description=payload.get("description"),
        category=payload.get("category"),
        occurred_on=date.fromisoformat(occurred_on) if occurred_on else None,
        metadata=dict(payload.get("metadata") or {}),
    )


def _spending_to_json(record: Spending) -> Dict[str, Any]:
    return {
        "id": record.spending_id,
        "owner": record.owner,
        "date": record.spent_on.isoformat(),
        "amount": str(record.amount),
        "description": record.description,
        "category": record.category,
        "metadata": dict(record.metadata),
    }


def _spending_from_json(payload: Mapping[str, Any]) -> Spending:
    return Spending(
        spending_id=payload["id"],
        owner=payload["owner"],
        spent_on=date.fromisoformat(payload["date"]),
        amount=Decimal(payload["amount"]),
        description=payload.get("description"),
        category=payload.get("category"),
        metadata=dict(payload.get("metadata") or {}),
    )


class StoreBackendRegistry:
    """Map backend identifiers to factories building a ``LedgerStore``."""

    def __init__(self) -> None:
        self._factories: Dict[str, Callable[[DailyBudgetSettings], LedgerStore]] = {}

    def register(self, name: str, factory: Callable[[DailyBudgetSettings], LedgerStore]) -> None:
        """Register a factory under a case-insensitive backend name."""

        identifier = name.lower()
        LOGGER.debug("Registering ledger store backend '%s'", identifier)
        self._factories[identifier] = factory

    def available_backends(self) -> Iterable[str]:
        return sorted(self._factories.keys())

    def create(self, name: str, settings: DailyBudgetSettings) -> LedgerStore:
        """Instantiate the backend matching ``name``."""

        factory = self._factories.get(name.lower())
        if not factory:
            raise KeyError(f"Unknown ledger store backend '{name}'")
        LOGGER.info("Creating ledger store backend '%s'", name)
        return factory(settings)


STORE_BACKENDS = StoreBackendRegistry()
STORE_BACKENDS.register("memory", lambda settings: InMemoryLedgerStore())
STORE_BACKENDS.register("file", lambda settings: JsonFileLedgerStore(settings.data_file))
