"""Mini README: HTTP interface for the budgeting service.

Exports the FastAPI application factory used by the CLI launcher and the
test suite.
"""

from .web_app import create_application

__all__ = ["create_application"]
