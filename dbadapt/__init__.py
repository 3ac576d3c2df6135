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

"""dbadapt — data-access helpers for MySQL and SQLite.

Executes parameterized statements, fetches results as dicts, derives
row-count queries from ``SELECT`` statements and builds ``INSERT`` /
``UPDATE`` statements from mappings.
"""

from dbadapt.db import (
    ConfigurationError,
    ConnectionSettings,
    CountedRows,
    DatabaseAdapter,
    DatabaseConnectionError,
    DbAdaptError,
    ExecResult,
    TransactionStateError,
    transaction,
)
from dbadapt.sql import (
    MultiRow,
    Query,
    SingleRow,
    build_count_query,
    build_part_sql,
    build_write_query,
)

__version__ = "0.1.0"

__all__ = [
    "DatabaseAdapter",
    "ConnectionSettings",
    "ExecResult",
    "CountedRows",
    "DbAdaptError",
    "ConfigurationError",
    "DatabaseConnectionError",
    "TransactionStateError",
    "transaction",
    "Query",
    "SingleRow",
    "MultiRow",
    "build_count_query",
    "build_write_query",
    "build_part_sql",
]
