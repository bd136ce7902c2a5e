# © Copyright 2022-2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from pathlib import Path


class StartSQLError(Exception):
    """StartSQLError is the base class for all errors raised by startsql.

    Every StartSQLError is fatal to the startup task - there is no local recovery,
    no retry and no partial commit.
    """

    pass


class ConfigurationError(StartSQLError):
    """ConfigurationError is raised when the options are invalid, most notably
    when neither an inline statement nor a statement file was configured.

    It is always raised before any connection to the database is attempted.
    """

    pass


class DatabaseConnectionError(StartSQLError):
    """DatabaseConnectionError is raised when the target database can't be opened."""

    database: str

    def __init__(self, database: str, reason: str) -> None:
        self.database = database
        super().__init__(f"could not connect to database {database!r}: {reason}")


class FileAccessError(StartSQLError):
    """FileAccessError is raised when the statement file can't be opened or read."""

    path: Path

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f'could not open file "{path}": {reason}')


class StatementTooLong(FileAccessError):
    """StatementTooLong is raised when a line of the statement file exceeds
    the configured maximum line length. Lines are never silently truncated.
    """

    line_number: int
    limit: int

    def __init__(self, path: Path, line_number: int, limit: int) -> None:
        self.line_number = line_number
        self.limit = limit
        super().__init__(path, f"line {line_number} is longer than {limit} characters")


class StatementExecutionError(StartSQLError):
    """StatementExecutionError is raised when the database engine fails to execute
    a statement. Carries the offending statement and the engine's error code.
    """

    statement: str
    error_code: int | None
    error_name: str | None

    def __init__(
        self,
        statement: str,
        error_code: int | None,
        error_name: str | None,
        reason: str,
    ) -> None:
        self.statement = statement
        self.error_code = error_code
        self.error_name = error_name
        code = f"{error_code} ({error_name})" if error_name else str(error_code)
        super().__init__(f"{statement.rstrip()} failed: error code {code}: {reason}")


class TaskCancelled(StartSQLError):
    """TaskCancelled is raised when a terminate request is observed between statements.
    The transaction is rolled back."""

    def __init__(self, executed: int) -> None:
        self.executed = executed
        super().__init__(f"terminate requested after {executed} statement(s)")


class TransactionError(StartSQLError):
    """TransactionError is raised when the database engine fails to begin or to commit
    the transaction, e.g. because the database is locked or a deferred constraint
    is violated. Nothing is committed.
    """

    operation: str
    error_code: int | None
    error_name: str | None

    def __init__(
        self,
        operation: str,
        error_code: int | None,
        error_name: str | None,
        reason: str,
    ) -> None:
        self.operation = operation
        self.error_code = error_code
        self.error_name = error_name
        code = f"{error_code} ({error_name})" if error_name else str(error_code)
        super().__init__(f"{operation} failed: error code {code}: {reason}")


class ActivityReportError(StartSQLError):
    """ActivityReportError is raised when the activity of the task can't be published."""

    path: Path

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f'could not write status file "{path}": {reason}')
