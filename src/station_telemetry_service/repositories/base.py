"""Shared asyncpg repository helpers."""
from __future__ import annotations

from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import Pool, Record  # type: ignore[import-untyped]

from station_telemetry_service.core.exceptions import RepositoryError

# Failures that mean "the store could not do it", as opposed to programming errors.
STORAGE_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
)


class BaseRepository:
    def __init__(self, pool: Pool):
        self._pool = pool

    async def _fetch(self, query: str, *args: Any) -> list[Record]:
        try:
            async with self._pool.acquire() as conn:
                return await conn.fetch(query, *args)
        except STORAGE_ERRORS as exc:
            raise RepositoryError(f"{type(exc).__name__}: {exc}") from exc

    async def _executemany(self, query: str, rows: list[tuple[Any, ...]]) -> None:
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    await conn.executemany(query, rows)
        except STORAGE_ERRORS as exc:
            raise RepositoryError(f"{type(exc).__name__}: {exc}") from exc
