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

"""Connection settings and connection factories.

Each factory returns a standard DB-API 2.0 connection running in
autocommit mode; explicit transactions are opened by
:class:`~dbadapt.db.adapter.DatabaseAdapter`.  MySQL uses ``pymysql``;
SQLite uses the built-in ``sqlite3`` module.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dbadapt.db.errors import ConfigurationError, DatabaseConnectionError

logger = logging.getLogger(__name__)

REQUIRED_SETTINGS = ("host", "dbname", "username", "password")
DEFAULT_CHARSET = "utf8"
DEFAULT_PORT = 3306
ENV_PREFIX = "DBADAPT_"


@dataclass(frozen=True)
class ConnectionSettings:
    """Validated MySQL connection settings.

    Attributes:
        host: Server host name.
        dbname: Database (schema) name.
        username: Login user.
        password: Login password.
        charset: Connection character set.
        port: TCP port.
    """

    host: str
    dbname: str
    username: str
    password: str
    charset: str = DEFAULT_CHARSET
    port: int = DEFAULT_PORT

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> ConnectionSettings:
        """Validate a plain mapping and build settings from it.

        Raises:
            ConfigurationError: If any of host, dbname, username or password
                is missing or empty.
        """
        missing = [key for key in REQUIRED_SETTINGS if not settings.get(key)]
        if missing:
            raise ConfigurationError(
                f"Invalid connection settings, missing: {', '.join(missing)}"
            )

        try:
            port = int(settings.get("port") or DEFAULT_PORT)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"Invalid connection settings, bad port: {settings.get('port')!r}"
            ) from exc

        return cls(
            host=str(settings["host"]),
            dbname=str(settings["dbname"]),
            username=str(settings["username"]),
            password=str(settings["password"]),
            charset=settings.get("charset") or DEFAULT_CHARSET,
            port=port,
        )

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> ConnectionSettings:
        """Read settings from ``<prefix>HOST``, ``<prefix>DBNAME`` etc."""
        names = (*REQUIRED_SETTINGS, "charset", "port")
        raw = {name: os.environ.get(f"{prefix}{name.upper()}") for name in names}
        return cls.from_mapping(raw)


def resolve_settings(
    settings: ConnectionSettings | Mapping[str, Any],
) -> ConnectionSettings:
    """Return *settings* as a validated :class:`ConnectionSettings`."""
    if isinstance(settings, ConnectionSettings):
        return settings
    return ConnectionSettings.from_mapping(settings)


def connect_mysql(settings: ConnectionSettings | Mapping[str, Any]) -> Any:
    """Open a MySQL connection via pymysql.

    Returns:
        A ``pymysql`` connection using ``DictCursor`` rows and autocommit.

    Raises:
        ConfigurationError: If the settings are incomplete.
        DatabaseConnectionError: If the server refuses the connection.
    """
    settings = resolve_settings(settings)

    try:
        import pymysql
        import pymysql.cursors
    except ImportError:
        raise ImportError(
            "pymysql not installed. Install with: pip install pymysql"
        )

    try:
        conn = pymysql.connect(
            host=settings.host,
            port=settings.port,
            user=settings.username,
            password=settings.password,
            database=settings.dbname,
            charset=settings.charset,
            cursorclass=pymysql.cursors.DictCursor,
            autocommit=True,
        )
    except pymysql.MySQLError as exc:
        raise DatabaseConnectionError(
            f"Cannot connect to {settings.host}:{settings.port}/{settings.dbname}: {exc}"
        ) from exc

    logger.debug(
        "MySQL connection opened: %s:%s/%s", settings.host, settings.port, settings.dbname
    )
    return conn


def connect_sqlite(
    path: str | Path,
    *,
    foreign_keys: bool = True,
) -> sqlite3.Connection:
    """Open (or create) a SQLite database and return a connection.

    Args:
        path: File path (``":memory:"`` for in-memory).
        foreign_keys: Enforce foreign key constraints.
    """
    path = str(Path(path).expanduser()) if path != ":memory:" else ":memory:"

    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    try:
        conn = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
    except sqlite3.Error as exc:
        raise DatabaseConnectionError(f"Cannot open SQLite database {path}: {exc}") from exc
    conn.row_factory = sqlite3.Row

    if foreign_keys:
        conn.execute("PRAGMA foreign_keys=ON")

    logger.debug("SQLite connection opened: %s", path)
    return conn
