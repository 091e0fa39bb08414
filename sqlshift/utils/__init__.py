"""
Utilities package for sqlshift.

Exports shared helpers for logging, statement execution and other
cross-cutting concerns. Keep this package lightweight and free of
domain-specific logic.
"""

from sqlshift.utils.logging import configure_logging, get_logger
from sqlshift.utils.sql import execute

__all__ = [
    "configure_logging",
    "execute",
    "get_logger",
]
