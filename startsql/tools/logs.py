# © Copyright 2022-2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
import sys
from typing import TextIO

from . import color

WORKER_LOGGER_PREFIX = "Task."
PACKAGE_LOGGER_PREFIX = "startsql."


class ColoredFormatter(logging.Formatter):
    """ColoredFormatter renders log records as single, human-readable lines colored
    with `ANSI escape sequences <https://en.wikipedia.org/wiki/ANSI_escape_code>`_::

        [INFO 12:30:00.123 4242] startsql_worker: running SELECT 1;
        [ERROR 12:30:00.125 4242] App: SELEC 1; failed: error code 1: ...

    The header carries the level, time and the id of the process - the host identifies
    its background workers by process id. Records of startup workers (``Task.<name>``
    loggers) show the bare worker name, highlighted; other records show the logger name
    with the package prefix removed.
    """

    default_time_format = "%H:%M:%S"
    default_msec_format = "%s.%03d"

    @staticmethod
    def get_msg_color(level: int) -> str:
        if level >= logging.CRITICAL:
            return color.WHITE + color.BG_RED
        elif level >= logging.ERROR:
            return color.RED
        elif level >= logging.WARNING:
            return color.YELLOW
        elif level >= logging.INFO:
            return color.RESET
        else:
            return color.DIM

    @staticmethod
    def get_source(name: str) -> str:
        if name.startswith(WORKER_LOGGER_PREFIX):
            return f"{color.MAGENTA}{name.removeprefix(WORKER_LOGGER_PREFIX)}"
        return f"{color.GREEN}{name.removeprefix(PACKAGE_LOGGER_PREFIX)}"

    def usesTime(self) -> bool:
        return True

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        record.asctime = self.formatTime(record)
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)

        header = (
            f"{color.BLUE}[{color.CYAN}{record.levelname}{color.BLUE} "
            f"{record.asctime} {record.process}]"
        )
        line = (
            f"{header} {self.get_source(record.name)}{color.RESET}: "
            f"{self.get_msg_color(record.levelno)}{record.message}{color.RESET}"
        )
        return f"{line}\n{record.exc_text}" if record.exc_text else line


def _writes_to_terminal(handler: logging.Handler) -> bool:
    return isinstance(handler, logging.StreamHandler) and handler.stream in (  # type: ignore
        sys.stdout,
        sys.stderr,
    )


def initialize(verbose: bool, stream: TextIO | None = None) -> logging.Handler:
    """Replaces every handler printing to stdout or stderr with a single
    logging.StreamHandler using the :py:class:`ColoredFormatter`, writing to ``stream``
    (stderr by default - the host's standard error channel, where every failure of
    the startup task ends up). Handlers writing elsewhere (e.g. to files) are kept.

    Returns the added handler.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    for handler in [h for h in root_logger.handlers if _writes_to_terminal(h)]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(ColoredFormatter())
    root_logger.addHandler(handler)
    return handler
