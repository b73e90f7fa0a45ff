"""
Postgres access for the session store.

One asyncpg pool per process. A session aggregate lives in three JSONB
columns (messages, current_component, component_history), so every pooled
connection gets a jsonb codec: pydantic models and lists of them go in
as-is, plain dicts and lists come out.

Repos reach the database only through owner_conn(), which pins the RLS
owner for exactly one transaction.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

import asyncpg
from pydantic import BaseModel

from backend import config

pool: asyncpg.Pool | None = None


def _jsonb_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    raise TypeError(f"{type(value).__name__} is not JSONB-serializable")


def encode_jsonb(value: Any) -> str:
    """Serialize a column value, models included, to JSONB text."""
    return json.dumps(value, default=_jsonb_default)


async def _register_codecs(conn: asyncpg.Connection) -> None:
    await conn.set_type_codec(
        "jsonb",
        encoder=encode_jsonb,
        decoder=json.loads,
        schema="pg_catalog",
    )


async def init_pool() -> None:
    """Open the process-wide pool. Called from the app lifespan."""
    global pool
    pool = await asyncpg.create_pool(
        dsn=config.settings.DATABASE_URL,
        min_size=2,
        max_size=20,
        command_timeout=60,
        init=_register_codecs,
    )


async def close_pool() -> None:
    """Close the pool if open. Safe to call twice."""
    global pool
    if pool is not None:
        await pool.close()
        pool = None


@asynccontextmanager
async def owner_conn(owner_id: str | UUID):
    """
    Transaction whose session rows are limited to one owner.

    The owner goes into `app.user_id` with set_config(..., true), so the
    sessions RLS policy sees it and the value is dropped at commit or
    rollback. Repo queries filter on owner_id as well.

    Args:
        owner_id: Principal that owns the sessions being touched

    Yields:
        asyncpg.Connection inside an open transaction
    """
    if pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")

    async with pool.acquire() as conn, conn.transaction():
        await conn.execute("SELECT set_config('app.user_id', $1, true)", str(owner_id))
        yield conn
