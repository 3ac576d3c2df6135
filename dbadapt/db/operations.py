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

"""Pure-function statement helpers.

All functions take a DB-API connection as their first argument.  SQL is
always written with ``?`` placeholders; for drivers using the ``format``
paramstyle (pymysql) the placeholders are rewritten to ``%s`` before the
statement is sent.  Rows come back as plain dicts whatever the driver's
row type.

Driver exceptions are never caught here: a malformed statement or a
constraint violation reaches the caller as the driver raised it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from dbadapt.sql.count import build_count_query

logger = logging.getLogger(__name__)

EMPTY_SCALAR = ""


@dataclass(frozen=True)
class ExecResult:
    """Outcome of a single :func:`execute` call.

    Attributes:
        affected_rows: Row count reported by the driver.
        insert_id: Auto-generated key, or ``None`` if none was produced.
        status: ``False`` only for skipped writes (see :meth:`empty_input`).
        message: Reason for a skipped write.
    """

    affected_rows: int = 0
    insert_id: int | None = None
    status: bool = True
    message: str = ""

    @property
    def value(self) -> int | bool:
        """The generated key if there is one, else the success flag."""
        return self.insert_id if self.insert_id else self.status

    @classmethod
    def empty_input(cls) -> ExecResult:
        """Result for a write that had no table name or no data."""
        return cls(status=False, message="Empty input")


@dataclass(frozen=True)
class CountedRows:
    """A page of rows together with the total count of the unpaged query."""

    count: int
    items: list[dict[str, Any]] = field(default_factory=list)


def _is_sqlite(conn: Any) -> bool:
    """Return True if the connection is SQLite."""
    return "sqlite3" in type(conn).__module__


def _driver_sql(conn: Any, sql: str) -> str:
    """Translate ``?`` placeholders for ``format``-paramstyle drivers."""
    if _is_sqlite(conn):
        return sql
    return sql.replace("%", "%%").replace("?", "%s")


def _run(conn: Any, sql: str, params: Sequence[Any]) -> Any:
    cur = conn.cursor()
    if params:
        logger.debug("Executing (%d params): %s", len(params), sql)
        cur.execute(_driver_sql(conn, sql), tuple(params))
    else:
        logger.debug("Executing: %s", sql)
        cur.execute(sql)
    return cur


def _row_to_dict(cur: Any, row: Any) -> dict[str, Any]:
    """Convert a sqlite3.Row, dict row or plain tuple to a dict."""
    if isinstance(row, Mapping):
        return dict(row)
    if hasattr(row, "keys"):
        return {key: row[key] for key in row.keys()}
    columns = [desc[0] for desc in cur.description]
    return dict(zip(columns, row))


def execute(conn: Any, sql: str, params: Sequence[Any] = ()) -> ExecResult:
    """Execute a single statement.

    With non-empty *params* the statement is run with positional binding,
    otherwise the text is run as-is.

    Returns:
        The affected-row count and generated key of this statement.
    """
    cur = _run(conn, sql, params)
    insert_id = cur.lastrowid
    return ExecResult(
        affected_rows=cur.rowcount,
        insert_id=int(insert_id) if insert_id else None,
    )


def fetch_scalar(conn: Any, sql: str, params: Sequence[Any] = ()) -> Any:
    """Execute and return the first column of the first row, or ``""``."""
    cur = _run(conn, sql, params)
    row = cur.fetchone()
    if row is None:
        return EMPTY_SCALAR
    # sqlite3.Row and tuples index by position, DictCursor rows do not.
    if isinstance(row, Mapping):
        return next(iter(row.values()), EMPTY_SCALAR)
    return row[0]


def fetch_row(conn: Any, sql: str, params: Sequence[Any] = ()) -> dict[str, Any]:
    """Execute and return the first row, or ``{}``."""
    cur = _run(conn, sql, params)
    row = cur.fetchone()
    if row is None:
        return {}
    return _row_to_dict(cur, row)


def fetch_all(conn: Any, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
    """Execute and return all rows, or ``[]``."""
    cur = _run(conn, sql, params)
    return [_row_to_dict(cur, row) for row in cur.fetchall()]


def fetch_all_with_count(
    conn: Any, sql: str, params: Sequence[Any] = ()
) -> CountedRows:
    """Return all rows of *sql* plus the row count ignoring ORDER BY/LIMIT.

    The count comes from a separate statement built by
    :func:`~dbadapt.sql.count.build_count_query`, executed with the same
    *params*.  The two statements do not share a snapshot.
    """
    count = fetch_scalar(conn, build_count_query(sql), params)
    return CountedRows(
        count=int(count or 0),
        items=fetch_all(conn, sql, params),
    )


def execute_script(conn: Any, script: str) -> None:
    """Execute a (possibly multi-statement) schema DDL string.

    For SQLite the entire string is executed via ``executescript()``.
    Other drivers receive each ``;``-terminated statement separately; the
    split is textual, so scripts with semicolons inside string literals or
    trigger bodies must be run statement by statement with :func:`execute`.
    """
    if _is_sqlite(conn):
        conn.executescript(script)
        return

    cur = conn.cursor()
    for statement in script.split(";"):
        if statement.strip():
            cur.execute(statement)
