# © Copyright 2022-2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from .activity import Activity, ActivityReporter, ActivityState, LogActivityReporter
from .cancellation import CancellationToken
from .db import DBConnection, Session
from .errors import ActivityReportError, StartSQLError, StatementExecutionError, TaskCancelled
from .options import StartSQLOptions
from .statements import read_statements


@dataclass(frozen=True)
class TaskRuntime:
    """TaskRuntime is the argument passed to :py:meth:`Task.execute`,
    with the runtime environment for the task to act upon.
    """

    options: StartSQLOptions
    token: CancellationToken = field(default_factory=CancellationToken)
    reporter: ActivityReporter = field(default_factory=LogActivityReporter)


class Task(ABC):
    """Task is a unit of work launched by the host once the database is available."""

    name: str
    logger: logging.Logger

    def __init__(self, name: Optional[str] = None) -> None:
        self.name = name or type(self).__name__
        self.logger = logging.getLogger(f"Task.{self.name}")

    @abstractmethod
    def execute(self, r: TaskRuntime) -> None:
        """execute performs the work of the task. Returning normally means success;
        any raised exception is a failure of the task.
        """
        raise NotImplementedError


class StartupTask(Task):
    """StartupTask runs the configured SQL statements once, in a single transaction.

    The inline statement (if any) is executed first, followed by every line of the
    statement file (if any), in file order. The first failing statement aborts the whole
    transaction - either every statement is committed, or none.

    Before every statement the :py:class:`~startsql.cancellation.CancellationToken` is
    checked; a terminate request rolls back the transaction and raises
    :py:exc:`~startsql.errors.TaskCancelled`.

    A failed run is reported as :py:attr:`~startsql.activity.ActivityState.FAILED`
    (with the failing statement, if any) before the error is re-raised.
    """

    reload_noticed: bool

    def __init__(self, name: Optional[str] = None) -> None:
        super().__init__(name)
        self.reload_noticed = False

    def execute(self, r: TaskRuntime) -> None:
        self.reload_noticed = False
        r.options.validate()

        try:
            with DBConnection.connect(r.options.database, r.options.create_database) as db:
                self.logger.info(f"{self.name} initialized in database {r.options.database}")
                self._run_statements(db, r)
        except StartSQLError as e:
            self._report_failure(r, e)
            raise

        self.report(r, ActivityState.IDLE)
        self.logger.info("exiting")

    def _run_statements(self, db: DBConnection, r: TaskRuntime) -> None:
        with read_statements(r.options.sources()) as statements, db.transaction() as session:
            self.report(r, ActivityState.RUNNING, r.options.statement)
            for statement in statements:
                self._execute_one(session, statement, r)

    def _execute_one(self, session: Session, statement: str, r: TaskRuntime) -> None:
        if r.token.reload_requested and not self.reload_noticed:
            self.logger.debug("Configuration reload requested - ignored by a one-shot task")
            self.reload_noticed = True
        if r.token.terminate_requested:
            raise TaskCancelled(session.executed)

        self.report(r, ActivityState.RUNNING, statement)
        self.logger.info(f"running {statement.rstrip()}")
        session.execute(statement)

    def report(self, r: TaskRuntime, state: ActivityState, query: Optional[str] = None) -> None:
        r.reporter.report(Activity(worker=self.name, state=state, query=query))

    def _report_failure(self, r: TaskRuntime, e: StartSQLError) -> None:
        query = e.statement if isinstance(e, StatementExecutionError) else None
        try:
            self.report(r, ActivityState.FAILED, query)
        except ActivityReportError as report_error:
            self.logger.warning(f"could not report failure: {report_error}")
