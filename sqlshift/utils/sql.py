"""
DB-API statement helper shared by the migration engine and checkpoint store.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


def execute(connection: Any, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
    """Run one statement on a fresh cursor and return the cursor's rows, if any."""
    cursor = connection.cursor()
    try:
        if params is None:
            cursor.execute(sql)
        else:
            cursor.execute(sql, params)
        if cursor.description is None:
            return None
        return cursor.fetchall()
    finally:
        cursor.close()


__all__ = ["execute"]
