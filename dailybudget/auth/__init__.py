"""Mini README: Account registry and token helpers for the budgeting API."""

from .accounts import AccountRegistry, UserAccount, hash_password, verify_password

__all__ = ["AccountRegistry", "UserAccount", "hash_password", "verify_password"]
