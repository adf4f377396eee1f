"""Blog posts: their wire shapes, the posts table and the blog schema."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterator, Mapping

from birb.connection import DatabaseConnection
from birb.errors import NotFoundError, SchemaError, schema_error_from
from birb.table import SqlTable, table_op

BlogId = int

TABLE = "posts"

_CREATE_TABLE = table_op(
    "CREATE TABLE IF NOT EXISTS",
    TABLE,
    "(id INTEGER PRIMARY KEY AUTOINCREMENT, title TEXT NOT NULL, author TEXT NOT NULL, "
    "content TEXT NOT NULL, created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP);",
)
_INSERT = table_op("INSERT INTO", TABLE, "(title, author, content) VALUES (?, ?, ?);")
_SELECT = f"SELECT id, title, author, content, created_at FROM {TABLE}"
_DELETE = f"DELETE FROM {TABLE} WHERE id = ?;"


@contextmanager
def _schema_errors() -> Iterator[None]:
    """Turn database failures raised inside the block into schema errors."""
    try:
        yield
    except SchemaError:
        raise
    except (sqlite3.Error, OSError, RuntimeError, ValueError) as exc:
        raise schema_error_from(exc) from exc


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return _utc(value)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return _utc(datetime.fromisoformat(text))


@dataclass(frozen=True)
class NewBlogPost:
    """A post as submitted for publishing."""

    title: str
    author: str
    content: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NewBlogPost:
        """Build from decoded JSON, ignoring unknown keys.

        Raises TypeError on a wrong type and ValueError on a missing field.
        """
        if not isinstance(data, Mapping):
            raise TypeError("invalid type: expected struct NewBlogPost")
        values = {}
        for name in ("title", "author", "content"):
            if name not in data:
                raise ValueError(f"missing field `{name}`")
            if not isinstance(data[name], str):
                raise TypeError(f"{name}: invalid type, expected a string")
            values[name] = data[name]
        return cls(**values)


@dataclass(frozen=True)
class IdResponse:
    """The identifier of a freshly published post."""

    id: BlogId

    def to_dict(self) -> dict[str, BlogId]:
        return {"id": self.id}


@dataclass(frozen=True)
class BlogPost:
    """A stored post."""

    id: BlogId
    title: str
    author: str
    content: str
    created_at: datetime

    @classmethod
    def _from_row(cls, row: Mapping[str, Any]) -> BlogPost:
        return cls(
            row["id"], row["title"], row["author"], row["content"],
            _parse_timestamp(row["created_at"]),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body; ``created_at`` is an RFC 3339 UTC timestamp."""
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "content": self.content,
            "created_at": _utc(self.created_at).isoformat().replace("+00:00", "Z"),
        }


class PostsTable(SqlTable):
    """Handle on the posts table; as a context manager it returns its connection."""

    @classmethod
    async def open(cls, conn: Any) -> PostsTable:
        with _schema_errors():
            await conn.execute(_CREATE_TABLE)
            await conn.commit()
        return cls(conn)

    async def insert(self, element: NewBlogPost) -> BlogId:
        with _schema_errors():
            cursor = await self.conn.execute(
                _INSERT, (element.title, element.author, element.content)
            )
            await self.conn.commit()
            return cursor.lastrowid

    async def delete(self, id: BlogId) -> None:
        with _schema_errors():
            cursor = await self.conn.execute(_DELETE, (id,))
            await self.conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError()

    async def get(self, id: BlogId) -> BlogPost:
        with _schema_errors():
            cursor = await self.conn.execute(_SELECT + " WHERE id = ?;", (id,))
            row = await cursor.fetchone()
        if row is None:
            raise NotFoundError()
        return BlogPost._from_row(row)

    async def get_all(self) -> list[BlogPost]:
        """Return every stored post."""
        with _schema_errors():
            cursor = await self.conn.execute(_SELECT + ";")
            rows = await cursor.fetchall()
        return [BlogPost._from_row(row) for row in rows]

    async def __aenter__(self) -> PostsTable:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.conn.release()


@dataclass
class BlogSchema:
    """Entry point to the blog tables."""

    connection: DatabaseConnection

    async def posts(self) -> PostsTable:
        """Borrow a connection and open the posts table on it."""
        with _schema_errors():
            conn = await self.connection.acquire_connection()
        try:
            return await PostsTable.open(conn)
        except BaseException:
            await conn.release()
            raise