"""Tests for PostgresClient - pooled query execution."""

from unittest.mock import MagicMock, Mock

import psycopg2
import psycopg2.extras
import psycopg2.pool
import pytest

from clients.postgres_client import PostgresClient

DSN = "postgresql://invoicing@db.test/invoicing"


@pytest.fixture
def pool(monkeypatch):
    conn = MagicMock()
    pool = MagicMock()
    pool.getconn.return_value = conn
    monkeypatch.setattr(psycopg2.pool, "ThreadedConnectionPool", Mock(return_value=pool))
    monkeypatch.setattr(psycopg2.extras, "register_default_jsonb", Mock())
    yield pool
    PostgresClient._connection_pools.clear()


@pytest.fixture
def conn(pool):
    return pool.getconn.return_value


@pytest.fixture
def cursor(conn):
    return conn.cursor.return_value.__enter__.return_value


@pytest.fixture
def db(pool):
    return PostgresClient(DSN)


class TestPool:
    """Connection pool lifecycle."""

    def test_pool_shared_per_url(self, pool, db):
        PostgresClient(DSN)
        assert psycopg2.pool.ThreadedConnectionPool.call_count == 1

    def test_close_removes_pool(self, pool, db):
        db.close()

        pool.closeall.assert_called_once()
        assert DSN not in PostgresClient._connection_pools


class TestExecute:
    """Query execution."""

    def test_returns_row_dicts(self, db, conn, cursor):
        cursor.description = [("id",)]
        cursor.fetchall.return_value = [{"id": "2026-3-15"}]

        rows = db.execute("SELECT id FROM invoices WHERE user_id = %s", ("dimitar",))

        assert rows == [{"id": "2026-3-15"}]
        cursor.execute.assert_called_once_with("SELECT id FROM invoices WHERE user_id = %s", ("dimitar",))
        conn.commit.assert_called_once()

    def test_statement_without_rows(self, db, cursor):
        cursor.description = None
        assert db.execute("DELETE FROM invoices") == []

    def test_execute_single(self, db, cursor):
        cursor.description = [("id",)]
        cursor.fetchall.return_value = []
        assert db.execute_single("SELECT 1") is None

        cursor.fetchall.return_value = [{"id": "a"}, {"id": "b"}]
        assert db.execute_single("SELECT 1") == {"id": "a"}

    def test_execute_returning(self, db, conn, cursor):
        cursor.fetchall.return_value = [{"user_id": "dimitar"}]

        assert db.execute_returning("INSERT ... RETURNING *") == [{"user_id": "dimitar"}]
        conn.commit.assert_called_once()

    def test_error_rolls_back_and_returns_connection(self, db, pool, conn, cursor):
        cursor.execute.side_effect = psycopg2.Error("boom")

        with pytest.raises(psycopg2.Error):
            db.execute("SELECT 1")

        conn.rollback.assert_called_once()
        pool.putconn.assert_called_once_with(conn)
