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

"""Thin database layer — pure functions over DB-API connections plus a
lazily connected adapter.

Supports MySQL (via pymysql) and SQLite (built-in).

Usage::

    from dbadapt.db import connect_sqlite, execute, fetch_row

    conn = connect_sqlite("~/.myapp/data.db")
    result = execute(conn, "INSERT INTO papers (doi) VALUES (?)", ["10.1101/x"])
    row = fetch_row(conn, "SELECT * FROM papers WHERE id=?", [result.insert_id])
"""

from dbadapt.db.adapter import DatabaseAdapter
from dbadapt.db.connection import ConnectionSettings, connect_mysql, connect_sqlite
from dbadapt.db.errors import (
    ConfigurationError,
    DatabaseConnectionError,
    DbAdaptError,
    TransactionStateError,
)
from dbadapt.db.operations import (
    CountedRows,
    ExecResult,
    execute,
    execute_script,
    fetch_all,
    fetch_all_with_count,
    fetch_row,
    fetch_scalar,
)
from dbadapt.db.transactions import TransactionState, transaction

__all__ = [
    "DatabaseAdapter",
    "ConnectionSettings",
    "connect_mysql",
    "connect_sqlite",
    "DbAdaptError",
    "ConfigurationError",
    "DatabaseConnectionError",
    "TransactionStateError",
    "ExecResult",
    "CountedRows",
    "execute",
    "execute_script",
    "fetch_scalar",
    "fetch_row",
    "fetch_all",
    "fetch_all_with_count",
    "TransactionState",
    "transaction",
]
