"""Mini README: Tests for the daily allowance calculator.

Structure:
    * scenario tests - the ten-day January budget used throughout.
    * property tests - transactions, spendings before/after the query date.
    * boundary tests - out-of-range dates, single-day windows, rounding.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from dailybudget.allowance import allowance_for_owner, calculate_daily_allowance, spending_by_day
from dailybudget.errors import ConfigMissing, DateOutOfRange
from dailybudget.ledger import BudgetConfig, InMemoryLedgerStore, Spending, Transaction


def _config(start_money: str = "1000", end_money: str = "0") -> BudgetConfig:
    return BudgetConfig(
        start_money=Decimal(start_money),
        start_date=date(2024, 1, 1),
        end_money=Decimal(end_money),
        end_date=date(2024, 1, 10),
    )


def _spending(day: int, amount: str, spending_id: str = "s") -> Spending:
    return Spending(
        spending_id=spending_id,
        owner="alice",
        spent_on=date(2024, 1, day),
        amount=Decimal(amount),
    )


def _transaction(amount: str, *, is_income: bool) -> Transaction:
    return Transaction(
        transaction_id="t",
        owner="alice",
        amount=Decimal(amount),
        is_income=is_income,
    )


def test_past_spending_is_deducted_before_amortising() -> None:
    """50 spent on the 2nd leaves 950 over the six days from the 5th to the 10th."""

    result = calculate_daily_allowance(_config(), [], [_spending(2, "50")], date(2024, 1, 5))
    assert result == Decimal("158.33")


def test_first_day_uses_whole_window() -> None:
    result = calculate_daily_allowance(_config(), [], [_spending(2, "50")], date(2024, 1, 1))
    assert result == Decimal("100.00")


@pytest.mark.parametrize(
    ("day", "expected"),
    [(1, "100.00"), (3, "125.00"), (4, "142.86"), (8, "333.33"), (10, "1000.00")],
)
def test_empty_ledger_divides_start_minus_end(day: int, expected: str) -> None:
    """Without records the allowance is (start - end) / remaining days."""

    result = calculate_daily_allowance(_config("1500", "500"), [], [], date(2024, 1, day))
    assert result == Decimal(expected)


def test_last_day_returns_net_balance() -> None:
    transactions = [_transaction("120.50", is_income=True)]
    result = calculate_daily_allowance(_config(), transactions, [], date(2024, 1, 10))
    assert result == Decimal("1120.50")


@pytest.mark.parametrize("query_date", [date(2023, 12, 31), date(2024, 1, 11), date(2025, 1, 1)])
def test_dates_outside_window_are_rejected(query_date: date) -> None:
    with pytest.raises(DateOutOfRange):
        calculate_daily_allowance(_config(), [], [], query_date)


def test_income_raises_allowance_by_amount_over_remaining_days() -> None:
    """300 of income spread over six remaining days adds exactly 50 per day."""

    spendings = [_spending(2, "50")]
    without = calculate_daily_allowance(_config(), [], spendings, date(2024, 1, 5))
    with_income = calculate_daily_allowance(
        _config(), [_transaction("300", is_income=True)], spendings, date(2024, 1, 5)
    )
    assert with_income - without == Decimal("50.00")
    assert with_income == Decimal("208.33")


def test_expense_transactions_reduce_balance_regardless_of_date() -> None:
    expense = Transaction(
        transaction_id="t",
        owner="alice",
        amount=Decimal("100"),
        is_income=False,
        occurred_on=date(2024, 3, 1),
    )
    result = calculate_daily_allowance(_config(), [expense], [_spending(2, "50")], date(2024, 1, 5))
    assert result == Decimal("141.67")


def test_spendings_on_or_after_query_date_are_ignored() -> None:
    spendings = [_spending(5, "200", "a"), _spending(7, "300", "b")]
    result = calculate_daily_allowance(_config(), [], spendings, date(2024, 1, 5))
    assert result == Decimal("166.67")


def test_spendings_before_start_date_are_ignored() -> None:
    early = Spending(spending_id="x", owner="alice", spent_on=date(2023, 12, 31), amount=Decimal("400"))
    result = calculate_daily_allowance(_config(), [], [early], date(2024, 1, 5))
    assert result == Decimal("166.67")


def test_same_day_spendings_are_summed() -> None:
    spendings = [_spending(2, "30", "a"), _spending(2, "20", "b"), _spending(3, "100", "c")]
    assert spending_by_day(spendings) == {
        date(2024, 1, 2): Decimal("50"),
        date(2024, 1, 3): Decimal("100"),
    }
    result = calculate_daily_allowance(_config(), [], spendings, date(2024, 1, 4))
    assert result == Decimal("121.43")


def test_single_day_window() -> None:
    config = BudgetConfig(
        start_money=Decimal("0.3"),
        start_date=date(2024, 2, 29),
        end_money=Decimal("0.1"),
        end_date=date(2024, 2, 29),
    )
    assert calculate_daily_allowance(config, [], [], date(2024, 2, 29)) == Decimal("0.20")


def test_rounding_is_half_up() -> None:
    config = BudgetConfig(
        start_money=Decimal("10.005"),
        start_date=date(2024, 1, 1),
        end_money=Decimal("0"),
        end_date=date(2024, 1, 1),
    )
    assert calculate_daily_allowance(config, [], [], date(2024, 1, 1)) == Decimal("10.01")


def test_overspending_yields_negative_allowance() -> None:
    result = calculate_daily_allowance(_config(), [], [_spending(1, "1600")], date(2024, 1, 3))
    assert result == Decimal("-75.00")


def test_allowance_for_owner_requires_config() -> None:
    store = InMemoryLedgerStore()
    with pytest.raises(ConfigMissing):
        allowance_for_owner(store, "alice", date(2024, 1, 5))


def test_allowance_for_owner_uses_only_owner_records() -> None:
    store = InMemoryLedgerStore()
    store.upsert_config("alice", _config())
    store.add_spending("alice", {"amount": "50", "date": "02/01/2024"})
    store.add_spending("bob", {"amount": "500", "date": "02/01/2024"})
    store.add_transaction("bob", {"amount": "900", "is_income": True})

    assert allowance_for_owner(store, "alice", date(2024, 1, 5)) == Decimal("158.33")


def test_large_balances_keep_cent_precision() -> None:
    """Values beyond the default 28-digit context still quantize to cents."""

    config = BudgetConfig(
        start_money=Decimal("1e27"),
        start_date=date(2024, 1, 1),
        end_money=Decimal("0"),
        end_date=date(2024, 1, 1),
    )
    assert calculate_daily_allowance(config, [], [], date(2024, 1, 1)) == Decimal("1e27")

    config = BudgetConfig(
        start_money=Decimal("123456789012345678901234567.89"),
        start_date=date(2024, 1, 1),
        end_money=Decimal("0.01"),
        end_date=date(2024, 1, 2),
    )
    result = calculate_daily_allowance(config, [], [], date(2024, 1, 1))
    assert result == Decimal("61728394506172839450617283.94")
