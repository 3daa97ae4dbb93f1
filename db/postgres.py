"""
Database connection pool and query-log methods.

This module provides a psycopg v3 AsyncConnectionPool for the query log, along
with async helpers for executing statements and the public methods used to
create the log table and insert finished sessions.
"""

import os
from typing import Sequence
from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool
from implementation.classes.schemas import LogRecord

_CREATE_QUERY_LOG_TABLE = """\
CREATE TABLE IF NOT EXISTS public.query_log (
  id BIGSERIAL PRIMARY KEY,
  original_query TEXT NOT NULL,
  suggested_titles TEXT[] NOT NULL DEFAULT '{}',
  probing_context JSONB NOT NULL DEFAULT '[]'::jsonb,
  success BOOLEAN NOT NULL,
  created_at TIMESTAMPTZ NOT NULL DEFAULT now()
)"""

_INSERT_QUERY_LOG = """\
INSERT INTO public.query_log
  (original_query, suggested_titles, probing_context, success, created_at)
VALUES (%s, %s, %s, %s, %s)
RETURNING id"""


def _build_conninfo() -> str:
    """
    Build a libpq connection string from environment variables.

    Returns:
        A connection string in the format expected by psycopg.
    """
    return (
        f"host={os.getenv('POSTGRES_HOST')} "
        f"dbname={os.getenv('POSTGRES_DB')} "
        f"user={os.getenv('POSTGRES_USER')} "
        f"password={os.getenv('POSTGRES_PASSWORD')}"
    )


def create_pool(conninfo: str | None = None) -> AsyncConnectionPool:
    """
    Create the query-log connection pool.

    The pool is created inert (open=False); the entry point opens it with
    `await pool.open()` and closes it on shutdown. A single CLI session writes
    one row, so the pool stays small.
    """
    return AsyncConnectionPool(
        conninfo=conninfo or _build_conninfo(),
        min_size=1,
        max_size=2,
        max_lifetime=1800,    # Recycle connections after 30 minutes to prevent staleness
        max_idle=300,
        timeout=5.0,          # Wait up to 5s for a connection before raising PoolTimeout
        open=False,
    )


# ===============================
#     PRIVATE BASE METHODS
# ===============================

async def _execute_write(
    pool: AsyncConnectionPool,
    query: str,
    params: Sequence[object] | None = None,
    fetch_one: bool = False,
):
    """
    Execute a write statement with an explicit commit.

    The connection is used within a transaction. On clean exit, the
    transaction is explicitly committed. If an exception occurs, the
    transaction is rolled back by the connection context manager.

    Args:
        pool: Open connection pool.
        query: SQL statement with parameter placeholders (%s).
        params: Optional sequence of parameters to bind to the statement.
        fetch_one: If True, fetch and return the first row (e.g., for RETURNING clauses).

    Returns:
        If fetch_one is True, returns the first row as a tuple, otherwise None.
    """
    async with pool.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, params)
            result = await cur.fetchone() if fetch_one else None
        await conn.commit()
        return result


# ===============================
#        PUBLIC METHODS
# ===============================

async def ensure_query_log_table(pool: AsyncConnectionPool) -> None:
    """Create the query_log table if it does not exist yet."""
    await _execute_write(pool, _CREATE_QUERY_LOG_TABLE)


async def insert_query_log(pool: AsyncConnectionPool, record: LogRecord) -> int:
    """
    Insert one finished session into query_log.

    Args:
        pool: Open connection pool.
        record: The session snapshot to persist.

    Returns:
        The id of the inserted row.
    """
    probing_context = [exchange.model_dump() for exchange in record.probing_context]
    row = await _execute_write(
        pool,
        _INSERT_QUERY_LOG,
        (
            record.original_query,
            list(record.suggested_titles),
            Jsonb(probing_context),
            record.success,
            record.timestamp,
        ),
        fetch_one=True,
    )
    return row[0]


async def check_postgres(pool: AsyncConnectionPool) -> str:
    """
    Ping Postgres via the pool to verify connectivity.

    Returns:
        'ok' if the check succeeds, otherwise an error message string.
    """
    try:
        async with pool.connection() as conn:
            await conn.execute("SELECT 1")
        return "ok"
    except Exception as e:
        return str(e)
