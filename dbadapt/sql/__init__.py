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

"""SQL text synthesis: count queries and INSERT/UPDATE builders."""

from dbadapt.sql.count import build_count_query, shield_nested, unshield_nested
from dbadapt.sql.write import (
    MultiRow,
    Query,
    SingleRow,
    build_multi_row_query,
    build_part_sql,
    build_single_row_query,
    build_write_query,
)

__all__ = [
    "build_count_query",
    "shield_nested",
    "unshield_nested",
    "Query",
    "SingleRow",
    "MultiRow",
    "build_write_query",
    "build_single_row_query",
    "build_multi_row_query",
    "build_part_sql",
]
