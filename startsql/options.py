# © Copyright 2022-2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError
from .statements import FileStatements, InlineStatement, StatementSource

DEFAULT_DATABASE = "main.db"
"""Database used when no database was configured."""

DEFAULT_WORKER_NAME = "startsql_worker"


@dataclass(frozen=True)
class StartSQLOptions:
    """StartSQLOptions is the immutable configuration of a startup task.
    It is constructed once, before the task is launched, and passed explicitly
    to everything that needs it.
    """

    database: str = DEFAULT_DATABASE
    """database is the path to the SQLite database the statements are executed against.
    Defaults to ``main.db`` in the current working directory.
    """

    statement: Optional[str] = None
    """statement is a single SQL statement, executed before any statements from
    :py:attr:`statement_file`.
    """

    statement_file: Optional[Path] = None
    """statement_file is a path to a file with one SQL statement per line.
    Those statements are executed after :py:attr:`statement`, in file order.
    """

    max_line_length: Optional[int] = None
    """max_line_length, if set, is a hard limit on the length of lines in
    :py:attr:`statement_file`. Longer lines cause :py:exc:`~startsql.errors.StatementTooLong`.
    By default lines of any length are accepted.
    """

    create_database: bool = False
    """create_database, when set to ``True``, allows a missing database to be created.
    By default the database must already exist - failing to open it is
    a :py:exc:`~startsql.errors.DatabaseConnectionError`.
    """

    status_file: Optional[Path] = None
    """status_file is an optional path where the current activity of the task
    is published as JSON, for external monitoring.
    """

    worker_name: str = DEFAULT_WORKER_NAME
    """worker_name identifies the task in logs and activity reports."""

    def validate(self) -> None:
        """Raises :py:exc:`~startsql.errors.ConfigurationError` if the options can't be
        used to run a startup task."""
        if self.statement is None and self.statement_file is None:
            raise ConfigurationError("statement and statement_file are not set")

        if self.max_line_length is not None and self.max_line_length <= 0:
            raise ConfigurationError(
                f"max_line_length must be positive, got {self.max_line_length}"
            )

        if not self.worker_name:
            raise ConfigurationError("worker_name must not be empty")

    def sources(self) -> list[StatementSource]:
        """Returns the configured statement sources, in execution order:
        the inline statement first, the statement file second."""
        sources: list[StatementSource] = []
        if self.statement is not None:
            sources.append(InlineStatement(self.statement))
        if self.statement_file is not None:
            sources.append(FileStatements(self.statement_file, self.max_line_length))
        return sources
