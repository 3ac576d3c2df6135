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

"""Derive a row-count query from an arbitrary ``SELECT`` statement.

The rewrite is purely textual:

1. parenthesized fragments (subqueries, function arguments) are swapped
   for ``#prcN#`` tokens so the following steps cannot touch them;
2. everything from the first ``ORDER BY`` / ``LIMIT`` onwards is dropped;
3. an ungrouped query has its select list replaced by ``COUNT(*)``, a
   grouped one is wrapped in ``SELECT COUNT(*) FROM (...) AS tmp_count``;
4. the tokens are replaced by the original fragments again.

Usage::

    from dbadapt.sql import build_count_query

    build_count_query("SELECT id, name FROM users WHERE id=? ORDER BY name")
    # 'SELECT COUNT(*) FROM users WHERE id=?'

Only the outermost group of each parenthesized run is shielded reliably.
Deeply nested parentheses with similar structure may be split at the first
closing paren; that is a known limitation of the pattern approach.
"""

from __future__ import annotations

import re

COUNT_ALIAS = "tmp_count"

_NESTED_RE = re.compile(r"\((.*?)\)", re.DOTALL)
_TAIL_RE = re.compile(r"(ORDER BY|LIMIT).*$", re.IGNORECASE | re.DOTALL)
_GROUP_BY_RE = re.compile(r"GROUP BY", re.IGNORECASE)
_SELECT_LIST_RE = re.compile(r"SELECT.*FROM", re.IGNORECASE | re.DOTALL)


def _token(n: int) -> str:
    return f"#prc{n}#"


def shield_nested(sql: str) -> tuple[str, dict[str, str]]:
    """Replace parenthesized fragments with numbered tokens.

    Returns the rewritten text and a ``token -> fragment`` table.  The
    parentheses themselves stay in the text; only their content moves.
    """
    fragments: dict[str, str] = {}

    def _shield(match: re.Match[str]) -> str:
        token = _token(len(fragments) + 1)
        fragments[token] = match.group(1)
        return f"({token})"

    return _NESTED_RE.sub(_shield, sql), fragments


def unshield_nested(sql: str, fragments: dict[str, str]) -> str:
    """Put the fragments recorded by :func:`shield_nested` back in place."""
    for token, fragment in fragments.items():
        sql = sql.replace(token, fragment)
    return sql


def build_count_query(sql: str) -> str:
    """Return a query yielding the number of rows *sql* would return.

    ``ORDER BY`` and ``LIMIT`` clauses are discarded.  Bind parameters are
    untouched, so the result runs with the same parameter list as *sql*.
    """
    query, fragments = shield_nested(sql)

    query = _TAIL_RE.sub("", query).strip()

    if _GROUP_BY_RE.search(query) is None:
        query = _SELECT_LIST_RE.sub(lambda _m: "SELECT COUNT(*) FROM", query, count=1)
    else:
        # one result row per group
        query = f"SELECT COUNT(*) FROM ({query}) AS {COUNT_ALIAS}"

    return unshield_nested(query, fragments)
