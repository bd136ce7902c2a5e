# © Copyright 2022-2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Generator, Type
from urllib.parse import quote

from .errors import DatabaseConnectionError, StatementExecutionError, TransactionError
from .tools.types import Self

__all__ = ["DBConnection", "Session"]

logger = logging.getLogger(__name__)


class Session:
    """Session is the handle used to execute statements inside a transaction
    opened by :py:meth:`DBConnection.transaction`.

    Results of the statements are discarded - the Session only checks whether the
    engine executed a statement successfully.

    Sessions are closed automatically at the end of the transaction;
    executing anything on a closed Session raises sqlite3.ProgrammingError.
    """

    started_at: datetime
    """started_at is the moment the transaction was started."""

    statement_started_at: datetime
    """statement_started_at is the moment the most recent statement was started,
    or :py:attr:`started_at` if no statements were executed yet."""

    executed: int
    """executed is the number of statements successfully executed in this Session."""

    def __init__(self, cursor: sqlite3.Cursor, started_at: datetime) -> None:
        self._cur = cursor
        self.started_at = started_at
        self.statement_started_at = started_at
        self.executed = 0

    def execute(self, statement: str) -> None:
        """Executes a single statement and discards its results.

        Raises :py:exc:`~startsql.errors.StatementExecutionError` with the engine's
        error code if the statement fails.
        """
        self.statement_started_at = datetime.now(timezone.utc)
        try:
            self._cur.execute(statement)
            # Step through the whole result - some errors only surface on later rows
            for _ in self._cur:
                pass
        except sqlite3.Error as e:
            raise StatementExecutionError(
                statement,
                getattr(e, "sqlite_errorcode", None),
                getattr(e, "sqlite_errorname", None),
                str(e),
            ) from e
        self.executed += 1

    def close(self) -> None:
        self._cur.close()


class DBConnection:
    """DBConnection represents a connection with the target SQLite database.

    **Transactions**

    The database is run in an auto-commit mode - transactions are only opened
    by :py:meth:`transaction`, which provides the :py:class:`Session` used to execute
    statements. All statements executed through a single Session commit together,
    or not at all.

    **Closing the DB**

    DBConnection's close() method releases resources held by the DBConnection.
    Any unclosed transactions are **not** committed.

    DBConnection can be used in a ``with`` statement - and such connection
    will be automatically closed upon exit from the with block.
    (Note that this behavior is different to sqlite3.Connection)

    **Foreign keys**

    Foreign key constraints are enforced on every connection. Constraints declared
    as ``DEFERRABLE INITIALLY DEFERRED`` are only checked on commit, so a violation
    fails the whole transaction with :py:exc:`~startsql.errors.TransactionError`.
    """

    def __init__(self, con: sqlite3.Connection, database: str) -> None:
        self._con: sqlite3.Connection = con
        self.database = database
        self._after_open()

    def _after_open(self) -> None:
        self._con.isolation_level = None
        self._con.execute("PRAGMA foreign_keys=1")

    @classmethod
    def connect(
        cls: Type[Self],
        database: str,
        create: bool = False,
        timeout: float = 5.0,
    ) -> Self:
        """Opens a connection to the provided database.

        Unless ``create`` is set, the database must already exist.
        ``timeout`` is the number of seconds to wait for a lock held by another
        connection before giving up.

        Raises :py:exc:`~startsql.errors.DatabaseConnectionError` if the database
        can't be opened or isn't a valid SQLite database.
        """
        if database == ":memory:":
            uri = "file::memory:"
        else:
            uri = f"file:{quote(database)}?mode={'rwc' if create else 'rw'}"

        try:
            con = sqlite3.connect(uri, uri=True, timeout=timeout)
        except sqlite3.Error as e:
            raise DatabaseConnectionError(database, str(e)) from e

        try:
            # Force SQLite to actually read the file header
            con.execute("PRAGMA schema_version").fetchone()
            return cls(con, database)
        except sqlite3.Error as e:
            con.close()
            raise DatabaseConnectionError(database, str(e)) from e

    # Resource handling

    def __enter__(self: Self) -> Self:
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    def close(self) -> None:
        """Closes any handles used to communicate with the sqlite3 engine.
        Any open transactions are **not** implicitly committed.
        """
        self._con.close()

    # Transaction handling

    @property
    def in_transaction(self) -> bool:
        """Proxy to sqlite3.Connection.in_transaction - should be True
        if there's an ongoing transaction."""
        return self._con.in_transaction

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """Abstracts transactions in a ``with`` block.::

            with database.transaction() as session:
                session.execute("CREATE TABLE t (x INTEGER)")

        The transaction is opened with ``BEGIN IMMEDIATE``, so the database lock is
        acquired upfront and all statements see a single, consistent state
        of the database.

        If an exception is raised in the body, the changes are rolled back.
        Otherwise, the changes are automatically committed.
        The Session is closed in both cases.

        Raises :py:exc:`~startsql.errors.TransactionError` if the transaction can't
        be started (e.g. the database is locked) or committed (e.g. a deferred
        constraint is violated). A failed commit is rolled back.
        """
        started_at = datetime.now(timezone.utc)
        try:
            self._con.execute("BEGIN IMMEDIATE TRANSACTION")
        except sqlite3.Error as e:
            raise _transaction_error("BEGIN", e) from e

        session = Session(self._con.cursor(), started_at)
        try:
            yield session
        except BaseException:
            session.close()
            self._con.rollback()
            logger.debug("Transaction rolled back after %d statement(s)", session.executed)
            raise
        else:
            session.close()
            try:
                self._con.commit()
            except sqlite3.Error as e:
                if self._con.in_transaction:
                    self._con.rollback()
                logger.debug("Commit failed after %d statement(s)", session.executed)
                raise _transaction_error("COMMIT", e) from e
            logger.debug("Transaction committed after %d statement(s)", session.executed)


def _transaction_error(operation: str, e: sqlite3.Error) -> TransactionError:
    return TransactionError(
        operation,
        getattr(e, "sqlite_errorcode", None),
        getattr(e, "sqlite_errorname", None),
        str(e),
    )
