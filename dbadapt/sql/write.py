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

"""Build ``INSERT`` / ``UPDATE`` statements from mappings.

Row data is passed as an explicit variant: :class:`SingleRow` produces an
``INSERT ... SET`` (or ``UPDATE ... SET ... WHERE``) statement,
:class:`MultiRow` a single multi-row ``INSERT INTO ... VALUES``.  Both
return a :class:`Query` holding the SQL text and its positional parameters,
ready for :func:`dbadapt.db.execute`.

Usage::

    from dbadapt.sql import SingleRow, MultiRow, build_write_query

    build_write_query("t", SingleRow({"a": 1, "b": "x"}))
    # Query(sql='INSERT `t` SET `a`=?, `b`=?', params=[1, 'x'])

    build_write_query("t", SingleRow({"a": 1}), index=5)
    # Query(sql='UPDATE `t` SET `a`=? WHERE `id`=?', params=[1, 5])

    build_write_query("t", MultiRow([{"a": 1}, {"a": 2}]), on_duplicate=["a"])
    # Query(sql='INSERT INTO `t` (`a`) VALUES (?), (?) '
    #           'ON DUPLICATE KEY UPDATE `a`=VALUES(`a`)', params=[1, 2])

Identifiers are backtick-quoted but not validated; never pass untrusted
table or column names.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, NamedTuple

DEFAULT_INDEX_KEY = "id"


class Query(NamedTuple):
    """SQL text plus its positional bind parameters."""

    sql: str
    params: list[Any]

    @property
    def is_empty(self) -> bool:
        """True for the "nothing to do" result of degenerate input."""
        return not self.sql


@dataclass(frozen=True)
class SingleRow:
    """One row of column -> value data."""

    row: Mapping[str, Any]


@dataclass(frozen=True)
class MultiRow:
    """Several rows sharing the key set and key order of the first row."""

    rows: Sequence[Mapping[str, Any]]


def _quote(name: str) -> str:
    return f"`{name}`"


def _duplicate_clause(columns: Sequence[str] | None) -> str:
    if not columns:
        return ""
    updates = ", ".join(f"{_quote(c)}=VALUES({_quote(c)})" for c in columns)
    return f"ON DUPLICATE KEY UPDATE {updates}"


def _join(*parts: str) -> str:
    return " ".join(part for part in parts if part)


def build_single_row_query(
    table: str,
    row: Mapping[str, Any],
    *,
    index: Any = None,
    index_key: str = DEFAULT_INDEX_KEY,
    where: str | None = None,
    where_params: Sequence[Any] = (),
    on_duplicate: Sequence[str] | None = None,
) -> Query:
    """Build an ``INSERT ... SET`` or ``UPDATE ... SET`` statement.

    An *index* selects update-by-key (``WHERE `index_key`=?``) and takes
    priority over a manual *where* clause.  The manual clause is inserted
    verbatim and must carry its own ``WHERE`` keyword; *where_params* are
    appended to the parameters in order.  With neither, the statement is an
    ``INSERT`` and *on_duplicate* columns get an
    ``ON DUPLICATE KEY UPDATE`` clause.
    """
    if not table or not row:
        return Query("", [])

    assignments = ", ".join(f"{_quote(key)}=?" for key in row)
    params = list(row.values())

    if index is not None:
        where_clause = f"WHERE {_quote(index_key)}=?"
        params.append(index)
    elif where:
        where_clause = where
        params.extend(where_params)
    else:
        where_clause = ""

    if where_clause:
        sql = _join("UPDATE", _quote(table), "SET", assignments, where_clause)
    else:
        sql = _join(
            "INSERT", _quote(table), "SET", assignments, _duplicate_clause(on_duplicate)
        )
    return Query(sql, params)


def build_multi_row_query(
    table: str,
    rows: Sequence[Mapping[str, Any]],
    *,
    on_duplicate: Sequence[str] | None = None,
) -> Query:
    """Build one ``INSERT INTO ... VALUES (...), (...)`` for all *rows*.

    Column names and order come from the first row; every other row is read
    with the same keys.
    """
    if not table or not rows or not rows[0]:
        return Query("", [])

    columns = list(rows[0])
    group = "(" + ",".join("?" for _ in columns) + ")"
    params = [row[key] for row in rows for key in columns]

    sql = _join(
        "INSERT INTO",
        _quote(table),
        "(" + ",".join(_quote(c) for c in columns) + ")",
        "VALUES",
        ", ".join(group for _ in rows),
        _duplicate_clause(on_duplicate),
    )
    return Query(sql, params)


def build_write_query(
    table: str,
    data: SingleRow | MultiRow,
    *,
    index: Any = None,
    index_key: str = DEFAULT_INDEX_KEY,
    where: str | None = None,
    where_params: Sequence[Any] = (),
    on_duplicate: Sequence[str] | None = None,
) -> Query:
    """Dispatch to the single-row or multi-row builder.

    Targeting options (*index*, *where*) only apply to :class:`SingleRow`;
    multi-row data always produces an ``INSERT``.  Empty *table* or empty
    row data yields an empty :class:`Query` instead of raising.
    """
    if isinstance(data, MultiRow):
        return build_multi_row_query(table, data.rows, on_duplicate=on_duplicate)
    if isinstance(data, SingleRow):
        return build_single_row_query(
            table,
            data.row,
            index=index,
            index_key=index_key,
            where=where,
            where_params=where_params,
            on_duplicate=on_duplicate,
        )
    raise TypeError(f"Expected SingleRow or MultiRow, got {type(data).__name__}")


def build_part_sql(data: Mapping[str, Any], glue: str = ", ") -> Query:
    """Build `` `col` = ? `` fragments for a WHERE or SET clause.

    ``None`` values are written as `` `col` = NULL `` and contribute no
    parameter.
    """
    parts: list[str] = []
    params: list[Any] = []
    for key, value in data.items():
        if value is None:
            parts.append(f"{_quote(key)} = NULL")
        else:
            parts.append(f"{_quote(key)} = ?")
            params.append(value)
    return Query(glue.join(parts), params)
