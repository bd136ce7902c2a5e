# © Copyright 2022-2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from . import activity, cancellation, config, db, errors, statements, tools, worker
from .app import App
from .cancellation import CancellationToken
from .options import DEFAULT_DATABASE, StartSQLOptions
from .statements import FileStatements, InlineStatement
from .task import StartupTask, Task, TaskRuntime
from .tools.logs import initialize as initialize_logging
from .worker import WorkerRegistration, register_worker

__all__ = [
    "activity",
    "cancellation",
    "config",
    "db",
    "errors",
    "statements",
    "tools",
    "worker",
    "App",
    "CancellationToken",
    "DBConnection",
    "DEFAULT_DATABASE",
    "FileStatements",
    "InlineStatement",
    "StartSQLOptions",
    "StartupTask",
    "Task",
    "TaskRuntime",
    "WorkerRegistration",
    "initialize_logging",
    "register_worker",
]

__name__ = "startsql"
__version__ = "0.1.0"

DBConnection = db.DBConnection
