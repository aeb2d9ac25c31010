"""
PostgreSQL client with connection pooling.

Uses psycopg2 with ThreadedConnectionPool. Rows come back as plain dicts,
NUMERIC as Decimal and JSONB as Python lists/dicts.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, List, Tuple

import psycopg2
import psycopg2.extras
import psycopg2.pool

logger = logging.getLogger(__name__)

# Global JSONB registration flag
_jsonb_registered = False


class PostgresClient:
    """
    PostgreSQL client shared by the invoice and settings services.

    Usage:
        db = PostgresClient(database_url)
        rows = db.execute("SELECT * FROM invoices WHERE user_id = %s", ("dimitar",))
    """

    # Class-level connection pools shared across instances
    _connection_pools: Dict[str, psycopg2.pool.ThreadedConnectionPool] = {}
    _pools_lock = threading.RLock()

    def __init__(self, database_url: str, minconn: int = 1, maxconn: int = 10):
        self._database_url = database_url
        self._minconn = minconn
        self._maxconn = maxconn
        self._ensure_connection_pool()

    def _ensure_connection_pool(self) -> None:
        """Create connection pool if it doesn't exist."""
        with self._pools_lock:
            if self._database_url not in self._connection_pools:
                pool = psycopg2.pool.ThreadedConnectionPool(
                    minconn=self._minconn,
                    maxconn=self._maxconn,
                    dsn=self._database_url,
                    connect_timeout=30,
                )

                global _jsonb_registered
                if not _jsonb_registered:
                    psycopg2.extras.register_default_jsonb(globally=True)
                    _jsonb_registered = True

                self._connection_pools[self._database_url] = pool
                logger.info("Connection pool created")

    @contextmanager
    def get_connection(self):
        """Borrow a connection from the pool. Rolls back on error."""
        if self._database_url not in self._connection_pools:
            self._ensure_connection_pool()

        pool = self._connection_pools[self._database_url]
        conn = None

        try:
            conn = pool.getconn()
            if conn is None:
                raise RuntimeError("Could not get connection from pool")
            yield conn
        except Exception:
            if conn is not None:
                conn.rollback()
            raise
        finally:
            if conn:
                pool.putconn(conn)

    def execute(self, query: str, params: Tuple | Dict | None = None) -> List[Dict[str, Any]]:
        """Execute query, return list of row dicts. Empty list if no results."""
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, params)
                if cur.description:
                    rows = [dict(row) for row in cur.fetchall()]
                    conn.commit()
                    return rows
                conn.commit()
                return []

    def execute_single(self, query: str, params: Tuple | Dict | None = None) -> Dict[str, Any] | None:
        """Execute query, return first row or None."""
        results = self.execute(query, params)
        return results[0] if results else None

    def execute_returning(self, query: str, params: Tuple | Dict | None = None) -> List[Dict[str, Any]]:
        """Execute INSERT/UPDATE with RETURNING, return results."""
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, params)
                conn.commit()
                return [dict(row) for row in cur.fetchall()]

    def close(self) -> None:
        """Close connection pool."""
        with self._pools_lock:
            if self._database_url in self._connection_pools:
                self._connection_pools[self._database_url].closeall()
                del self._connection_pools[self._database_url]
