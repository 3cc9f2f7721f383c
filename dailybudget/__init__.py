"""Mini README: Core package initializer for the dailybudget service.

This module exposes convenience imports so that callers can reach the
logging helpers without knowing the exact module structure. It stays
lightweight so importing the package never pulls in the web framework.
"""

from .logging_utils import get_logger

__all__ = ["get_logger"]
