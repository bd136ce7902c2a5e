# © Copyright 2022-2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .activity import ActivityReporter, LogActivityReporter
from .cancellation import CancellationToken
from .options import StartSQLOptions
from .task import StartupTask, TaskRuntime

__all__ = ["StartPhase", "RestartPolicy", "WorkerRegistration", "register_worker"]

logger = logging.getLogger(__name__)


class StartPhase(Enum):
    """StartPhase tells the host when a worker may be launched.
    Startup workers always wait until recovery has finished."""

    RECOVERY_FINISHED = "recovery_finished"


class RestartPolicy(Enum):
    """RestartPolicy tells the host what to do once a worker exits.
    Startup workers run exactly once."""

    NEVER = "never"


@dataclass(frozen=True)
class WorkerRegistration:
    """WorkerRegistration describes a worker to the host which launches it.

    The host calls :py:attr:`main` exactly once per launch, with the
    :py:class:`~startsql.cancellation.CancellationToken` fed by its signal handlers.
    Returning normally means success; any raised exception means failure.
    """

    name: str
    main: Callable[[CancellationToken], None]
    type: str = "startsql_worker"
    start_phase: StartPhase = StartPhase.RECOVERY_FINISHED
    restart: RestartPolicy = RestartPolicy.NEVER


@dataclass
class _StartupWorkerMain:
    options: StartSQLOptions
    reporter: ActivityReporter = field(default_factory=LogActivityReporter)

    def __call__(self, token: CancellationToken) -> None:
        task = StartupTask(self.options.worker_name)
        task.execute(TaskRuntime(self.options, token, self.reporter))


def register_worker(
    options: StartSQLOptions,
    register: Callable[[WorkerRegistration], None],
    reporter: Optional[ActivityReporter] = None,
) -> WorkerRegistration:
    """Validates the options and registers a startup worker with the host.

    Raises :py:exc:`~startsql.errors.ConfigurationError` on invalid options -
    in that case ``register`` is never called and the worker is never launched.
    """
    options.validate()

    registration = WorkerRegistration(
        name=options.worker_name,
        main=_StartupWorkerMain(options, reporter or LogActivityReporter()),
    )
    register(registration)
    logger.info(f"{registration.name} started")
    return registration
