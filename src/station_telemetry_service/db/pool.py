"""Asyncpg connection pool helpers."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import asyncpg  # type: ignore[import-untyped]
import structlog

logger = structlog.get_logger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"

pool: asyncpg.Pool | None = None


async def init_pool(database_url: str, pool_size: int, _app: Any = None) -> asyncpg.Pool:
    """Initialize global asyncpg pool."""
    global pool
    if pool is None:
        pool = await asyncpg.create_pool(
            dsn=database_url,
            max_size=pool_size,
        )
        logger.info("db_pool_initialized", max_size=pool_size)
    return pool


async def close_pool(_app: Any = None) -> None:
    """Close pool on shutdown."""
    global pool
    if pool is not None:
        await pool.close()
        pool = None


async def ensure_schema(db_pool: asyncpg.Pool) -> None:
    """Create the telemetry table and its indexes if they do not exist yet."""
    ddl = SCHEMA_PATH.read_text(encoding="utf-8")
    async with db_pool.acquire() as conn:
        await conn.execute(ddl)
    logger.info("db_schema_ensured", path=str(SCHEMA_PATH))
