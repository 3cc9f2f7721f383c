"""Mini README: Daily allowance calculation.

Exports the pure calculator and the store-backed convenience wrapper used
by the web layer and the CLI.
"""

from .calculator import allowance_for_owner, calculate_daily_allowance, spending_by_day

__all__ = ["allowance_for_owner", "calculate_daily_allowance", "spending_by_day"]
