"""A bounded pool of SQLite connections."""

from __future__ import annotations

import asyncio
import os
from typing import Any, Iterable

import aiosqlite

MAX_CONNECTIONS = 100


class _PooledConnection:
    """A borrowed connection that goes back to its pool when released."""

    def __init__(self, raw: aiosqlite.Connection, pool: DatabaseConnection) -> None:
        self._raw = raw
        self._pool = pool
        self._released = False

    @property
    def raw(self) -> aiosqlite.Connection:
        if self._released:
            raise RuntimeError("connection has been released")
        return self._raw

    async def execute(self, sql: str, parameters: Iterable[Any] = ()) -> aiosqlite.Cursor:
        return await self.raw.execute(sql, tuple(parameters))

    async def commit(self) -> None:
        await self.raw.commit()

    async def release(self) -> None:
        if not self._released:
            self._released = True
            await self._pool._give_back(self._raw)

    async def __aenter__(self) -> _PooledConnection:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.release()


class DatabaseConnection:
    """A pool handing out at most ``max_connections`` connections at once."""

    def __init__(self, path: str | os.PathLike[str], max_connections: int = MAX_CONNECTIONS) -> None:
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")
        self.path = os.fspath(path)
        self.max_connections = max_connections
        self._idle: list[aiosqlite.Connection] = []
        self._slots = asyncio.Semaphore(max_connections)
        self._closed = False

    @classmethod
    async def connect(
        cls, path: str | os.PathLike[str], max_connections: int = MAX_CONNECTIONS
    ) -> DatabaseConnection:
        """Create a pool, opening one connection to fail early."""
        pool = cls(path, max_connections)
        pool._idle.append(await pool._open())
        return pool

    async def _open(self) -> aiosqlite.Connection:
        raw = await aiosqlite.connect(self.path)
        raw.row_factory = aiosqlite.Row
        return raw

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("connection pool is closed")

    async def acquire_connection(self) -> _PooledConnection:
        """Borrow a connection, waiting while the pool is exhausted."""
        self._check_open()
        await self._slots.acquire()
        try:
            self._check_open()
            raw = self._idle.pop() if self._idle else await self._open()
        except BaseException:
            self._slots.release()
            raise
        return _PooledConnection(raw, self)

    async def _give_back(self, raw: aiosqlite.Connection) -> None:
        try:
            if self._closed:
                await raw.close()
            else:
                self._idle.append(raw)
        finally:
            self._slots.release()

    async def close(self) -> None:
        """Close idle connections; borrowed ones close when released."""
        self._closed = True
        idle, self._idle = self._idle, []
        for raw in idle:
            await raw.close()