"""Mini README: Daily allowance computation over a loaded ledger snapshot.

Structure:
    * calculate_daily_allowance - pure function over config and records.
    * allowance_for_owner - loads an owner's snapshot from a store first.
    * spending_by_day - groups spendings into per-day totals.

How the allowance is derived:
    1. The query date must lie inside ``[start_date, end_date]``.
    2. The net balance starts at ``start_money - end_money`` and absorbs
       every transaction (income adds, expenses subtract) regardless of
       its date.
    3. Each day from ``start_date`` up to the day before the query date has
       that day's spendings deducted. The walk stops early once no days
       remain before ``end_date``.
    4. The balance is divided across the remaining days, the query date and
       ``end_date`` both included, and rounded half-up to cents.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Dict, Iterable, List

from ..dates import days_between, iter_days
from ..errors import ConfigMissing, DateOutOfRange
from ..ledger.models import BudgetConfig, Spending, Transaction
from ..ledger.store import LedgerStore
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

CENTS = Decimal("0.01")


def spending_by_day(spendings: Iterable[Spending]) -> Dict[date, Decimal]:
    """Sum spending amounts per calendar day."""

    totals: Dict[date, Decimal] = defaultdict(Decimal)
    for spending in spendings:
        totals[spending.spent_on] += spending.amount
    return dict(totals)


def _working_precision(values: List[Decimal], minimum: int) -> int:
    """Digits needed so sums and the cent-quantized quotient stay exact."""

    nonzero = [value for value in values if value]
    if not nonzero:
        return minimum
    largest = max(value.adjusted() for value in nonzero)
    finest = min(min(value.as_tuple().exponent for value in nonzero), -2)
    headroom = len(str(len(values))) + 10
    return max(minimum, largest - finest + headroom)


def calculate_daily_allowance(
    config: BudgetConfig,
    transactions: Iterable[Transaction],
    spendings: Iterable[Spending],
    query_date: date,
) -> Decimal:
    """Return how much may be spent per day from ``query_date`` to the end."""

    if query_date < config.start_date or query_date > config.end_date:
        raise DateOutOfRange(query_date, config.start_date, config.end_date)

    transactions = list(transactions)
    spendings = list(spendings)
    amounts = [config.start_money, config.end_money]
    amounts += [transaction.amount for transaction in transactions]
    amounts += [spending.amount for spending in spendings]

    with localcontext() as context:
        context.prec = _working_precision(amounts, context.prec)
        net_balance = config.start_money - config.end_money
        net_balance += sum((transaction.signed_amount for transaction in transactions), Decimal(0))

        spent_per_day = spending_by_day(spendings)
        for current in iter_days(config.start_date, query_date):
            spent_today = spent_per_day.get(current, Decimal(0))
            if days_between(current, config.end_date) <= 0:
                break
            net_balance -= spent_today

        remaining_days = days_between(query_date, config.end_date) + 1
        allowance = (net_balance / remaining_days).quantize(CENTS, rounding=ROUND_HALF_UP)
    LOGGER.debug(
        "Allowance for %s: balance=%s remaining_days=%s -> %s",
        query_date.isoformat(),
        net_balance,
        remaining_days,
        allowance,
    )
    return allowance


def allowance_for_owner(store: LedgerStore, owner: str, query_date: date) -> Decimal:
    """Load the owner's snapshot and compute the allowance for ``query_date``."""

    snapshot = store.snapshot(owner)
    if snapshot.config is None:
        raise ConfigMissing(owner)
    return calculate_daily_allowance(
        snapshot.config, snapshot.transactions, snapshot.spendings, query_date
    )
