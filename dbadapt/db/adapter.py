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

"""Connection-owning facade over the statement helpers and SQL builders.

A :class:`DatabaseAdapter` holds one connection, opened on first use and
reused for the lifetime of the instance.  It is not thread-safe: use one
adapter per thread or serialise access externally.

Usage::

    from dbadapt import DatabaseAdapter, SingleRow

    db = DatabaseAdapter({"host": "db", "dbname": "app",
                          "username": "app", "password": "secret"})
    new_id = db.set("users", SingleRow({"name": "Ann"})).insert_id
    page = db.fetch_all_with_count(
        "SELECT * FROM users WHERE name LIKE ? LIMIT 20", ["A%"]
    )
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from contextlib import AbstractContextManager
from typing import Any

from dbadapt.db import operations
from dbadapt.db.connection import ConnectionSettings, connect_mysql, resolve_settings
from dbadapt.db.errors import ConfigurationError
from dbadapt.db.operations import CountedRows, ExecResult
from dbadapt.db.transactions import TransactionState, TransactionTracker, transaction
from dbadapt.sql.count import build_count_query
from dbadapt.sql.write import MultiRow, Query, SingleRow, build_part_sql, build_write_query

logger = logging.getLogger(__name__)

Connector = Callable[[ConnectionSettings], Any]


class DatabaseAdapter:
    """Lazily connected database handle.

    Parameters
    ----------
    settings:
        Connection settings, either validated :class:`ConnectionSettings`
        or a plain mapping that is validated immediately.  May be omitted
        and supplied later via :meth:`set_connection_params`.
    connector:
        Callable turning settings into a DB-API connection.  Defaults to
        :func:`~dbadapt.db.connection.connect_mysql`.
    """

    def __init__(
        self,
        settings: ConnectionSettings | Mapping[str, Any] | None = None,
        *,
        connector: Connector = connect_mysql,
    ) -> None:
        self._settings: ConnectionSettings | None = None
        self._connector = connector
        self._connection: Any = None
        self._tx = TransactionTracker()
        if settings is not None:
            self.set_connection_params(settings)

    @classmethod
    def from_connection(cls, conn: Any) -> DatabaseAdapter:
        """Wrap an already open DB-API connection."""
        adapter = cls()
        adapter._connection = conn
        return adapter

    def set_connection_params(
        self, settings: ConnectionSettings | Mapping[str, Any]
    ) -> None:
        """Validate and store settings for the next connection attempt."""
        self._settings = resolve_settings(settings)

    # --- Connection ---------------------------------------------------------

    @property
    def connection(self) -> Any:
        """The underlying connection, opened on first access."""
        if self._connection is None:
            if self._settings is None:
                raise ConfigurationError("Invalid connection settings: none configured")
            self._connection = self._connector(self._settings)
        return self._connection

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def close(self) -> None:
        """Close the connection; the next operation reconnects."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            self._tx = TransactionTracker()

    # --- Statements ---------------------------------------------------------

    def query(self, sql: str, params: Sequence[Any] = ()) -> ExecResult:
        """Execute a statement and return its affected rows and insert id."""
        return operations.execute(self.connection, sql, params)

    execute = query

    def fetch_scalar(self, sql: str, params: Sequence[Any] = ()) -> Any:
        return operations.fetch_scalar(self.connection, sql, params)

    def fetch_row(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any]:
        return operations.fetch_row(self.connection, sql, params)

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        return operations.fetch_all(self.connection, sql, params)

    def fetch_all_with_count(
        self, sql: str, params: Sequence[Any] = ()
    ) -> CountedRows:
        return operations.fetch_all_with_count(self.connection, sql, params)

    # --- Writes -------------------------------------------------------------

    def set(
        self,
        table: str,
        data: SingleRow | MultiRow,
        index: Any = None,
        *,
        index_key: str = "id",
        where: str | None = None,
        where_params: Sequence[Any] = (),
        on_duplicate: Sequence[str] | None = None,
    ) -> ExecResult:
        """Insert or update *table* from mapping data.

        See :func:`~dbadapt.sql.write.build_write_query` for how *index*,
        *where* and *on_duplicate* shape the statement.  Empty input is
        skipped and reported as ``ExecResult(status=False)``.
        """
        built = build_write_query(
            table,
            data,
            index=index,
            index_key=index_key,
            where=where,
            where_params=where_params,
            on_duplicate=on_duplicate,
        )
        if built.is_empty:
            return ExecResult.empty_input()
        return self.query(built.sql, built.params)

    @staticmethod
    def build_part_sql(data: Mapping[str, Any], glue: str = ", ") -> Query:
        return build_part_sql(data, glue)

    @staticmethod
    def build_count_query(sql: str) -> str:
        return build_count_query(sql)

    # --- Transactions -------------------------------------------------------

    @property
    def transaction_state(self) -> TransactionState:
        return self._tx.state

    def start(self) -> None:
        """Begin a transaction; fails if one is already active."""
        self._tx.begin(self.connection)

    def commit(self) -> None:
        self._tx.commit(self.connection)

    def rollback(self) -> None:
        self._tx.rollback(self.connection)

    def transaction(self) -> AbstractContextManager[DatabaseAdapter]:
        """Shortcut for :func:`dbadapt.db.transactions.transaction`."""
        return transaction(self)
