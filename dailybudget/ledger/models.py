"""Mini README: Budget and ledger records owned by a single user.

Structure:
    * BudgetConfig - the owner's budget window (start/end money and dates).
    * Transaction - period-wide income or expense entry.
    * Spending - money spent on one specific day.
    * LedgerSnapshot - config plus every record loaded for one owner.
    * coerce_* helpers - validate request payloads into typed values.

Records are immutable once stored. Free-form data is only accepted inside
the ``metadata`` extension map; any other unknown field is rejected so that
arbitrary keys never end up mixed with the typed attributes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Mapping, Optional

from ..dates import format_date, parse_date
from ..errors import InvalidBudgetWindow

TRANSACTION_FIELDS = {"amount", "is_income", "description", "category", "occurred_on", "metadata"}
SPENDING_FIELDS = {"amount", "date", "description", "category", "metadata"}
MAX_MONEY = Decimal("1e15")


def coerce_decimal(value: object, *, field_name: str = "amount") -> Decimal:
    """Convert numbers and numeric strings to ``Decimal`` without float noise."""

    if isinstance(value, bool):
        raise ValueError(f"Field '{field_name}' must be numeric.")
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            # str() first so 0.1 becomes Decimal("0.1") rather than its binary expansion
            number = Decimal(str(value))
        except (InvalidOperation, TypeError) as error:
            raise ValueError(f"Field '{field_name}' must be numeric, got {value!r}.") from error
    if not number.is_finite():
        raise ValueError(f"Field '{field_name}' must be a finite number, got {value!r}.")
    if abs(number) > MAX_MONEY:
        raise ValueError(f"Field '{field_name}' must not exceed {MAX_MONEY:,f} in magnitude.")
    return number


def coerce_amount(value: object) -> Decimal:
    """Validate a non-negative monetary amount."""

    amount = coerce_decimal(value)
    if amount < 0:
        raise ValueError(f"Amount must be a non-negative number, got {value!r}.")
    return amount


def coerce_flag(value: object, *, field_name: str) -> bool:
    """Accept only real booleans."""

    if not isinstance(value, bool):
        raise ValueError(f"Field '{field_name}' must be a boolean, got {value!r}.")
    return value


def coerce_metadata(value: object) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError("Metadata must be provided as a dictionary of string pairs.")
    return {str(key): str(item) for key, item in value.items()}


def _optional_text(value: object) -> Optional[str]:
    return None if value is None else str(value)


def _reject_unknown(fields: Mapping[str, object], allowed: set, kind: str) -> None:
    unknown = sorted(set(fields) - allowed)
    if unknown:
        raise ValueError(f"Unsupported {kind} field(s): {', '.join(unknown)}")


@dataclass(frozen=True, slots=True)
class BudgetConfig:
    """Budget window: money available at the start and wanted at the end."""

    start_money: Decimal
    start_date: date
    end_money: Decimal
    end_date: date

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise InvalidBudgetWindow(
                f"Budget start {format_date(self.start_date)} is after end {format_date(self.end_date)}"
            )

    @classmethod
    def from_fields(cls, fields: Mapping[str, object]) -> "BudgetConfig":
        """Build a config from loosely typed values (strings, numbers, dates)."""

        missing = [
            name
            for name in ("start_money", "start_date", "end_money", "end_date")
            if fields.get(name) is None
        ]
        if missing:
            raise ValueError(f"Missing config field(s): {', '.join(missing)}")
        return cls(
            start_money=coerce_decimal(fields["start_money"], field_name="start_money"),
            start_date=parse_date(fields["start_date"]),
            end_money=coerce_decimal(fields["end_money"], field_name="end_money"),
            end_date=parse_date(fields["end_date"]),
        )

    def as_dict(self) -> Dict[str, object]:
        return {
            "start_money": float(self.start_money),
            "start_date": format_date(self.start_date),
            "end_money": float(self.end_money),
            "end_date": format_date(self.end_date),
        }


@dataclass(frozen=True, slots=True)
class Transaction:
    """Inflow (``is_income``) or outflow applied to the whole budget period."""

    transaction_id: str
    owner: str
    amount: Decimal
    is_income: bool
    description: Optional[str] = None
    category: Optional[str] = None
    occurred_on: Optional[date] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_fields(cls, transaction_id: str, owner: str, fields: Mapping[str, object]) -> "Transaction":
        """Validate a request payload and tag it with identifier and owner."""

        _reject_unknown(fields, TRANSACTION_FIELDS, "transaction")
        if fields.get("amount") is None:
            raise ValueError("Transaction amount is required.")
        occurred_on = fields.get("occurred_on")
        return cls(
            transaction_id=transaction_id,
            owner=owner,
            amount=coerce_amount(fields["amount"]),
            is_income=coerce_flag(fields.get("is_income", False), field_name="is_income"),
            description=_optional_text(fields.get("description")),
            category=_optional_text(fields.get("category")),
            occurred_on=parse_date(occurred_on) if occurred_on is not None else None,
            metadata=coerce_metadata(fields.get("metadata")),
        )

    @property
    def signed_amount(self) -> Decimal:
        """Amount as it affects the balance: positive for income."""

        return self.amount if self.is_income else -self.amount

    def as_dict(self) -> Dict[str, object]:
        """Export the transaction with serialisable values."""

        return {
            "id": self.transaction_id,
            "amount": float(self.amount),
            "is_income": self.is_income,
            "description": self.description,
            "category": self.category,
            "occurred_on": format_date(self.occurred_on) if self.occurred_on else None,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True, slots=True)
class Spending:
    """Money spent on a single calendar day."""

    spending_id: str
    owner: str
    spent_on: date
    amount: Decimal
    description: Optional[str] = None
    category: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_fields(cls, spending_id: str, owner: str, fields: Mapping[str, object]) -> "Spending":
        """Validate a request payload and tag it with identifier and owner."""

        _reject_unknown(fields, SPENDING_FIELDS, "spending")
        if fields.get("amount") is None or fields.get("date") is None:
            raise ValueError("Spending amount and date are required.")
        return cls(
            spending_id=spending_id,
            owner=owner,
            spent_on=parse_date(fields["date"]),
            amount=coerce_amount(fields["amount"]),
            description=_optional_text(fields.get("description")),
            category=_optional_text(fields.get("category")),
            metadata=coerce_metadata(fields.get("metadata")),
        )

    def as_dict(self) -> Dict[str, object]:
        return {
            "id": self.spending_id,
            "date": format_date(self.spent_on),
            "amount": float(self.amount),
            "description": self.description,
            "category": self.category,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True, slots=True)
class LedgerSnapshot:
    """Everything the allowance calculator needs for one owner."""

    owner: str
    config: Optional[BudgetConfig]
    transactions: List[Transaction]
    spendings: List[Spending]
