"""Mini README: Error kinds raised by the budgeting core and its collaborators.

Structure:
    * BudgetError - common base so callers can catch every domain failure.
    * ConfigMissing / InvalidBudgetWindow - budget window problems.
    * DateOutOfRange - allowance query outside the budget window.
    * RecordNotFound - delete targeting a missing or foreign record.
    * DuplicateUser / InvalidCredentials / InvalidToken - account failures.

The web layer maps each kind onto an HTTP status; nothing here is fatal to
the process.
"""

from __future__ import annotations


class BudgetError(Exception):
    """Base class for every failure surfaced by the budgeting service."""


class ConfigMissing(BudgetError):
    """The owner has not defined a budget window yet."""

    def __init__(self, owner: str) -> None:
        super().__init__(f"No budget config defined for owner {owner}")
        self.owner = owner


class InvalidBudgetWindow(BudgetError, ValueError):
    """A budget window whose start date falls after its end date."""


class DateOutOfRange(BudgetError, ValueError):
    """Allowance query date outside the inclusive budget window."""

    def __init__(self, query_date, start_date, end_date) -> None:
        super().__init__(
            f"Date {query_date.isoformat()} is outside the budget window "
            f"{start_date.isoformat()}..{end_date.isoformat()}"
        )
        self.query_date = query_date
        self.start_date = start_date
        self.end_date = end_date


class RecordNotFound(BudgetError):
    """No record matches both the identifier and the requesting owner."""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class DuplicateUser(BudgetError):
    """Signup for a username that is already registered."""


class InvalidCredentials(BudgetError):
    """Unknown username or wrong password."""


class InvalidToken(BudgetError):
    """Access token that cannot be decoded, verified or has expired."""
