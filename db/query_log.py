"""
Outcome recording for finished refinement sessions.

Each session produces exactly one LogRecord. Recording is best effort: a
failed write is logged and dropped, never retried and never shown to the user.
"""

import logging
from typing import Sequence

from psycopg_pool import AsyncConnectionPool

from db.postgres import ensure_query_log_table, insert_query_log
from implementation.classes.schemas import LogRecord, ProbeExchange

logger = logging.getLogger(__name__)


class PostgresOutcomeRecorder:
    """OutcomeRecorder that appends session transcripts to the query_log table."""

    def __init__(self, pool: AsyncConnectionPool, create_table: bool = True) -> None:
        self._pool = pool
        self._table_ready = not create_table

    async def record(
        self,
        original_query: str,
        suggested_titles: Sequence[str],
        probing_context: Sequence[ProbeExchange],
        success: bool,
    ) -> None:
        record = LogRecord(
            original_query=original_query,
            suggested_titles=list(suggested_titles),
            probing_context=list(probing_context),
            success=success,
        )
        try:
            if not self._table_ready:
                await ensure_query_log_table(self._pool)
                self._table_ready = True
            row_id = await insert_query_log(self._pool, record)
        except Exception as e:
            logger.error("Error logging user query %r: %s", original_query, e)
            return
        logger.info("Logged session outcome (id=%s, success=%s)", row_id, success)
