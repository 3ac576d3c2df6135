# dbadapt — data-access helpers over DB-API connections
# Copyright (C) 2024-2026 Dr Horst Herb
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Tests for dbadapt.db.adapter and dbadapt.db.transactions."""

from __future__ import annotations

import sqlite3
from unittest.mock import MagicMock

import pytest

from dbadapt import (
    ConfigurationError,
    DatabaseAdapter,
    ExecResult,
    MultiRow,
    SingleRow,
    TransactionStateError,
    transaction,
)
from dbadapt.db import TransactionState, connect_sqlite, execute_script

SETTINGS = {"host": "db", "dbname": "app", "username": "u", "password": "p"}


def _mem_db():
    conn = connect_sqlite(":memory:")
    execute_script(conn, "CREATE TABLE t (id INTEGER PRIMARY KEY, a INTEGER, b TEXT);")
    return DatabaseAdapter.from_connection(conn)


def _mock_db():
    """Adapter over a mock pymysql-style connection."""
    conn = MagicMock()
    cur = conn.cursor.return_value
    cur.lastrowid = 0
    cur.rowcount = 0
    return DatabaseAdapter.from_connection(conn), conn, cur


class TestLazyConnection:
    def test_not_connected_until_first_use(self):
        connector = MagicMock(return_value=connect_sqlite(":memory:"))
        db = DatabaseAdapter(SETTINGS, connector=connector)
        assert not db.is_connected
        connector.assert_not_called()

        assert db.fetch_scalar("SELECT 1") == 1
        assert db.is_connected
        connector.assert_called_once()

    def test_connection_is_memoized(self):
        connector = MagicMock(return_value=connect_sqlite(":memory:"))
        db = DatabaseAdapter(SETTINGS, connector=connector)
        db.fetch_scalar("SELECT 1")
        db.fetch_row("SELECT 2 AS n")
        db.execute("SELECT 3")
        assert connector.call_count == 1
        assert db.connection is connector.return_value

    def test_connector_receives_validated_settings(self):
        connector = MagicMock()
        db = DatabaseAdapter(SETTINGS, connector=connector)
        db.connection
        settings = connector.call_args.args[0]
        assert settings.host == "db"
        assert settings.charset == "utf8"

    def test_invalid_settings_fail_fast(self):
        with pytest.raises(ConfigurationError):
            DatabaseAdapter({"host": "db"}, connector=MagicMock())

    def test_no_settings_fails_on_first_use(self):
        connector = MagicMock()
        db = DatabaseAdapter(connector=connector)
        with pytest.raises(ConfigurationError):
            db.fetch_all("SELECT 1")
        connector.assert_not_called()

    def test_settings_supplied_later(self):
        connector = MagicMock(return_value=connect_sqlite(":memory:"))
        db = DatabaseAdapter(connector=connector)
        db.set_connection_params(SETTINGS)
        assert db.fetch_scalar("SELECT 5") == 5

    def test_close_and_reconnect(self):
        connector = MagicMock(side_effect=lambda _s: connect_sqlite(":memory:"))
        db = DatabaseAdapter(SETTINGS, connector=connector)
        db.fetch_scalar("SELECT 1")
        db.close()
        assert not db.is_connected
        db.fetch_scalar("SELECT 1")
        assert connector.call_count == 2


class TestFetchSurface:
    def test_zero_row_sentinels(self):
        db = _mem_db()
        assert db.fetch_scalar("SELECT a FROM t WHERE id=?", [1]) == ""
        assert db.fetch_row("SELECT * FROM t WHERE id=?", [1]) == {}
        assert db.fetch_all("SELECT * FROM t") == []

    def test_fetch_all_with_count(self):
        db = _mem_db()
        db.set("t", MultiRow([{"a": i, "b": "x"} for i in range(5)]))
        page = db.fetch_all_with_count("SELECT a FROM t WHERE b=? ORDER BY a LIMIT 2", ["x"])
        assert page.count == 5
        assert page.items == [{"a": 0}, {"a": 1}]

    def test_count_query_helper(self):
        assert DatabaseAdapter.build_count_query("SELECT a FROM t LIMIT 1") == (
            "SELECT COUNT(*) FROM t"
        )

    def test_part_sql_helper(self):
        sql, params = DatabaseAdapter.build_part_sql({"a": None, "b": 1}, " AND ")
        assert sql == "`a` = NULL AND `b` = ?"
        assert params == [1]


class TestSet:
    def test_single_row_insert_sends_built_query(self):
        db, _, cur = _mock_db()
        cur.lastrowid = 11
        cur.rowcount = 1
        result = db.set("t", SingleRow({"a": 1, "b": "x"}))
        cur.execute.assert_called_once_with("INSERT `t` SET `a`=%s, `b`=%s", (1, "x"))
        assert result.insert_id == 11
        assert result.value == 11

    def test_update_by_index_on_sqlite(self):
        db = _mem_db()
        new_id = db.set("t", MultiRow([{"a": 1, "b": "x"}])).insert_id
        result = db.set("t", SingleRow({"b": "y"}), new_id)
        assert result.affected_rows == 1
        assert db.fetch_row("SELECT a, b FROM t WHERE id=?", [new_id]) == {"a": 1, "b": "y"}

    def test_update_with_manual_where(self):
        db = _mem_db()
        db.set("t", MultiRow([{"a": 1, "b": "x"}, {"a": 2, "b": "x"}, {"a": 3, "b": "z"}]))
        result = db.set("t", SingleRow({"b": "w"}), where="WHERE `b`=?", where_params=["x"])
        assert result.affected_rows == 2
        assert db.fetch_scalar("SELECT COUNT(*) FROM t WHERE b='w'") == 2

    def test_multi_row_insert_on_sqlite(self):
        db = _mem_db()
        result = db.set("t", MultiRow([{"a": 1, "b": "p"}, {"a": 2, "b": "q"}]))
        assert result.affected_rows == 2
        assert db.fetch_all("SELECT a, b FROM t ORDER BY a") == [
            {"a": 1, "b": "p"},
            {"a": 2, "b": "q"},
        ]

    def test_empty_input_is_a_noop(self):
        db, conn, _ = _mock_db()
        for result in (
            db.set("", SingleRow({"a": 1})),
            db.set("t", SingleRow({})),
            db.set("t", MultiRow([])),
        ):
            assert result == ExecResult(status=False, message="Empty input")
            assert result.value is False
        conn.cursor.assert_not_called()


class TestTransactions:
    def test_commit_on_success(self):
        db = _mem_db()
        with db.transaction():
            db.set("t", MultiRow([{"a": 1, "b": "committed"}]))
        assert db.fetch_scalar("SELECT b FROM t") == "committed"
        assert db.transaction_state is TransactionState.IDLE

    def test_rollback_on_error(self):
        db = _mem_db()
        with pytest.raises(RuntimeError):
            with transaction(db):
                db.set("t", MultiRow([{"a": 1, "b": "rollback"}]))
                raise RuntimeError("boom")
        assert db.fetch_row("SELECT * FROM t") == {}
        assert db.transaction_state is TransactionState.IDLE

    def test_explicit_start_commit(self):
        db = _mem_db()
        db.start()
        assert db.transaction_state is TransactionState.ACTIVE
        db.execute("INSERT INTO t (a) VALUES (?)", [4])
        db.commit()
        assert db.transaction_state is TransactionState.IDLE
        assert db.fetch_scalar("SELECT a FROM t") == 4

    def test_explicit_rollback(self):
        db = _mem_db()
        db.start()
        db.execute("INSERT INTO t (a) VALUES (?)", [4])
        db.rollback()
        assert db.fetch_scalar("SELECT a FROM t") == ""

    def test_second_start_fails(self):
        db = _mem_db()
        db.start()
        with pytest.raises(TransactionStateError):
            db.start()
        db.rollback()

    def test_commit_without_start_fails(self):
        db = _mem_db()
        with pytest.raises(TransactionStateError):
            db.commit()
        with pytest.raises(TransactionStateError):
            db.rollback()

    def test_failed_commit_returns_to_idle(self):
        db, conn, _ = _mock_db()
        conn.commit.side_effect = RuntimeError("lost connection")
        db.start()
        conn.begin.assert_called_once()
        with pytest.raises(RuntimeError, match="lost connection"):
            db.commit()
        assert db.transaction_state is TransactionState.IDLE
        db.start()
        assert db.transaction_state is TransactionState.ACTIVE

    def test_commit_error_reaches_caller_from_context_manager(self):
        db, conn, _ = _mock_db()
        conn.commit.side_effect = RuntimeError("lost connection")
        with pytest.raises(RuntimeError, match="lost connection"):
            with db.transaction():
                pass
        conn.rollback.assert_called_once()
        assert db.transaction_state is TransactionState.IDLE

    def test_commit_error_kept_when_rollback_also_fails(self):
        db, conn, _ = _mock_db()
        conn.commit.side_effect = RuntimeError("lost connection")
        conn.rollback.side_effect = RuntimeError("still lost")
        db.start()
        with pytest.raises(RuntimeError, match="lost connection"):
            db.commit()
        assert db.transaction_state is TransactionState.IDLE

    def test_failed_deferred_commit_leaves_no_open_transaction(self):
        conn = connect_sqlite(":memory:")
        execute_script(
            conn,
            "CREATE TABLE parent (id INTEGER PRIMARY KEY);"
            "CREATE TABLE child (id INTEGER PRIMARY KEY, pid INTEGER"
            " REFERENCES parent(id) DEFERRABLE INITIALLY DEFERRED);",
        )
        db = DatabaseAdapter.from_connection(conn)

        db.start()
        db.execute("INSERT INTO child (pid) VALUES (?)", [99])
        with pytest.raises(sqlite3.IntegrityError):
            db.commit()

        assert db.transaction_state is TransactionState.IDLE
        assert not conn.in_transaction
        assert db.fetch_all("SELECT * FROM child") == []

        db.start()
        db.execute("INSERT INTO parent (id) VALUES (?)", [1])
        db.commit()
        assert db.fetch_scalar("SELECT COUNT(*) FROM parent") == 1
