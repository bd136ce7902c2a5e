# © Copyright 2022-2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
from argparse import ArgumentParser, Namespace
from dataclasses import replace
from pathlib import Path
from sys import exit
from typing import final

from .activity import (
    ActivityReporter,
    FileActivityReporter,
    LogActivityReporter,
    MultiActivityReporter,
)
from .cancellation import CancellationToken, install_signal_handlers, restore_signal_handlers
from .config import load_options
from .errors import StartSQLError, TaskCancelled
from .options import StartSQLOptions
from .tools.logs import initialize as initialize_logging
from .worker import WorkerRegistration, register_worker


class App:
    """App is the command-line host of a single startup task. It loads the configuration,
    registers the startup worker, launches it once and maps its outcome onto
    the exit code of the process::

        if __name__ == "__main__":
            App().run()

    The process exits with 0 on success, with 1 if the task has failed and with
    ``--cancelled-exit-code`` (3 by default) if the task was terminated by SIGTERM
    before all statements were executed.
    """

    name: str
    logger: logging.Logger

    def __init__(self, name: str = "startsql") -> None:
        self.name = name
        self.logger = logging.getLogger("App")

    def add_arguments(self, parser: ArgumentParser) -> None:
        """add_argument may be overwritten to add extra arguments to be parsed from
        the command line. Default is to add no extra arguments.
        """
        pass

    @final
    def _get_arg_parser_with_default_options(self) -> ArgumentParser:
        parser = ArgumentParser(
            prog=self.name,
            description="Run SQL statements once, in a single transaction, and exit.",
        )
        parser.add_argument(
            "-c",
            "--config",
            type=Path,
            help="YAML file with the configuration; command-line options take precedence",
        )
        parser.add_argument(
            "-d",
            "--database",
            help="database to connect to (default: main.db)",
        )
        parser.add_argument(
            "-s",
            "--statement",
            help="SQL statement to execute first",
        )
        parser.add_argument(
            "-f",
            "--file",
            type=Path,
            help="file with one SQL statement per line, executed after --statement",
        )
        parser.add_argument(
            "--max-line-length",
            type=int,
            help="reject statement file lines longer than this",
        )
        parser.add_argument(
            "--create-database",
            action="store_true",
            default=None,
            help="create the database if it doesn't exist",
        )
        parser.add_argument(
            "--status-file",
            type=Path,
            help="publish the current activity as JSON in this file",
        )
        parser.add_argument(
            "--worker-name",
            help="name of the worker in logs and activity reports",
        )
        parser.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            help="show DEBUG logging messages",
        )
        parser.add_argument(
            "-T",
            "--cancelled-exit-code",
            type=int,
            default=3,
            help="exit code to use when the task was terminated",
        )
        return parser

    @final
    def _parse_args(self, args_str: list[str] | None = None) -> Namespace:
        parser = self._get_arg_parser_with_default_options()
        self.add_arguments(parser)
        return parser.parse_args(args_str)

    @final
    def _prepare_options(self, args: Namespace) -> StartSQLOptions:
        options = load_options(args.config) if args.config else StartSQLOptions()
        overrides = {
            "database": args.database,
            "statement": args.statement,
            "statement_file": args.file,
            "max_line_length": args.max_line_length,
            "create_database": args.create_database,
            "status_file": args.status_file,
            "worker_name": args.worker_name,
        }
        return replace(options, **{k: v for k, v in overrides.items() if v is not None})

    def prepare_reporter(self, options: StartSQLOptions) -> ActivityReporter:
        """prepare_reporter returns the :py:class:`~startsql.activity.ActivityReporter`
        receiving activity updates of the task. May be overwritten to publish activity
        elsewhere."""
        if options.status_file is None:
            return LogActivityReporter()
        return MultiActivityReporter(
            [LogActivityReporter(), FileActivityReporter(options.status_file)]
        )

    @final
    def run(self, args_str: list[str] | None = None) -> None:
        """run parses command-line arguments (either from the provided list or sys.argv),
        registers the startup worker and runs it once.

        Returns normally only if all statements were committed.
        """
        args = self._parse_args(args_str)
        initialize_logging(verbose=args.verbose)

        registrations: list[WorkerRegistration] = []
        try:
            options = self._prepare_options(args)
            register_worker(options, registrations.append, self.prepare_reporter(options))
        except StartSQLError as e:
            self.logger.critical(str(e))
            exit(1)

        token = CancellationToken()
        previous_handlers = install_signal_handlers(token)
        try:
            for registration in registrations:
                registration.main(token)
        except TaskCancelled as e:
            self.logger.warning(str(e))
            exit(args.cancelled_exit_code)
        except StartSQLError as e:
            self.logger.error(str(e))
            exit(1)
        finally:
            restore_signal_handlers(previous_handlers)


def main() -> None:
    App().run()
