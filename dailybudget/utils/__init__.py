"""Mini README: Utility helpers shared across dailybudget packages.

Currently exports the atomic JSON document writer used by the file-backed
ledger store and the account registry.
"""

from .json_files import read_json_document, write_json_atomic

__all__ = ["read_json_document", "write_json_atomic"]
