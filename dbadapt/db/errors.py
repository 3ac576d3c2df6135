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

"""Exception types raised by dbadapt.

Statement execution errors (malformed SQL, constraint violations) are *not*
wrapped: they surface as the driver's own exception classes.
"""

from __future__ import annotations


class DbAdaptError(Exception):
    """Base class for all dbadapt errors."""


class ConfigurationError(DbAdaptError):
    """A mandatory connection setting is missing or empty."""


class DatabaseConnectionError(DbAdaptError):
    """The underlying driver failed to open a connection."""


class TransactionStateError(DbAdaptError):
    """A transaction operation was called from the wrong state."""
