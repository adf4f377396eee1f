"""The basic interface every SQL table handle provides."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

SerialId = int


class SqlTable(ABC):
    """A handle on one table, bound to a pooled connection.

    Only the basic operations live here; tables add their own methods.
    """

    def __init__(self, conn: Any) -> None:
        self.conn = conn

    @classmethod
    async def open(cls, conn: Any) -> "SqlTable":
        """Create a handle on this table using ``conn``."""
        return cls(conn)

    @abstractmethod
    async def insert(self, element: Any) -> Any:
        """Insert ``element`` and return its identifier."""

    @abstractmethod
    async def delete(self, id: Any) -> None:
        """Delete the row identified by ``id``."""

    @abstractmethod
    async def get(self, id: Any) -> Any:
        """Return the row identified by ``id``."""


def table_op(operation: str, table: str, body: str) -> str:
    """Join an SQL operation, a table name and the statement body."""
    return f"{operation} {table} {body}"