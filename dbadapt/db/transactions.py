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

"""Transaction state tracking and context manager."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Any

from dbadapt.db.errors import TransactionStateError

if TYPE_CHECKING:
    from dbadapt.db.adapter import DatabaseAdapter

logger = logging.getLogger(__name__)


class TransactionState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTING = "committing"
    ROLLING_BACK = "rolling_back"


class TransactionTracker:
    """Drives one connection through begin/commit/rollback.

    ``begin`` is only legal from IDLE, ``commit`` and ``rollback`` only from
    ACTIVE.  Commit and rollback pass through a transient state and always
    end in IDLE, also when the driver call raises.  A commit that fails
    while the driver still holds the transaction open is rolled back
    first, so IDLE always matches a connection with no open transaction.
    """

    def __init__(self) -> None:
        self.state = TransactionState.IDLE

    def begin(self, conn: Any) -> None:
        if self.state is not TransactionState.IDLE:
            raise TransactionStateError(
                f"Cannot start a transaction while {self.state.value}"
            )
        # sqlite3 in autocommit mode needs an explicit BEGIN; pymysql has begin().
        if _is_sqlite(conn):
            conn.execute("BEGIN")
        else:
            conn.begin()
        self.state = TransactionState.ACTIVE
        logger.debug("Transaction started")

    def commit(self, conn: Any) -> None:
        self._require_active("commit")
        self.state = TransactionState.COMMITTING
        try:
            conn.commit()
        except Exception:
            _discard(conn)
            raise
        finally:
            self.state = TransactionState.IDLE
        logger.info("Transaction committed")

    def rollback(self, conn: Any) -> None:
        self._require_active("roll back")
        self.state = TransactionState.ROLLING_BACK
        try:
            conn.rollback()
        finally:
            self.state = TransactionState.IDLE
        logger.info("Transaction rolled back")

    def _require_active(self, action: str) -> None:
        if self.state is not TransactionState.ACTIVE:
            raise TransactionStateError(f"No active transaction to {action}")


def _is_sqlite(conn: Any) -> bool:
    return "sqlite3" in type(conn).__module__


def _discard(conn: Any) -> None:
    """Roll back whatever a failed commit left open on the driver side."""
    # pymysql exposes no in-transaction flag; ROLLBACK without one is a no-op.
    if _is_sqlite(conn) and not conn.in_transaction:
        return
    try:
        conn.rollback()
    except Exception:
        # the commit error is the one re-raised to the caller
        logger.warning("Rollback after failed commit also failed", exc_info=True)
        return
    logger.info("Transaction rolled back after failed commit")


@contextmanager
def transaction(db: DatabaseAdapter) -> Generator[DatabaseAdapter, None, None]:
    """Context manager that commits on success, rolls back on exception.

    An error raised by the commit itself reaches the caller unchanged.

    Usage::

        with transaction(db):
            db.set("papers", SingleRow({"doi": "10.1101/x"}))
            db.execute("UPDATE counters SET n = n + 1")
        # auto-committed here
    """
    db.start()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    db.commit()
