# © Copyright 2022-2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from itertools import chain
from pathlib import Path
from typing import Generator, Iterable, Iterator, Optional, TextIO

from .errors import FileAccessError, StatementTooLong

__all__ = ["InlineStatement", "FileStatements", "StatementSource", "read_statements"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InlineStatement:
    """InlineStatement is a single SQL statement provided directly in the configuration."""

    text: str

    def statements(self) -> Iterator[str]:
        """Yields the configured statement, unmodified."""
        yield self.text


@dataclass(frozen=True)
class FileStatements:
    """FileStatements is a file with one SQL statement per line.

    Statements spanning multiple lines are not supported - every line is passed to the
    database engine on its own, unmodified (including the line terminator). Lines consisting
    only of whitespace are skipped.

    If ``max_line_length`` is set, any line longer than it (not counting the line terminator)
    causes :py:exc:`~startsql.errors.StatementTooLong` to be raised. Otherwise lines
    of any length are accepted.
    """

    path: Path
    max_line_length: Optional[int] = None

    @contextmanager
    def open(self) -> Generator[Iterator[str], None, None]:
        """Opens the file and provides a lazy iterator over statements in file order.
        The file is closed on exit from the with block, even if the block raises::

            with source.open() as statements:
                for statement in statements:
                    execute(statement)

        Raises :py:exc:`~startsql.errors.FileAccessError` if the file can't be opened.
        """
        try:
            f = self.path.open(mode="r", encoding="utf-8", newline="")
        except OSError as e:
            raise FileAccessError(self.path, e.strerror or str(e)) from e

        with f:
            yield self._lines(f)

    def _lines(self, f: TextIO) -> Iterator[str]:
        for line_number, line in enumerate(f, start=1):
            if self.max_line_length is not None:
                if len(line.rstrip("\r\n")) > self.max_line_length:
                    raise StatementTooLong(self.path, line_number, self.max_line_length)

            if not line.strip():
                logger.debug("%s:%d: skipping blank line", self.path, line_number)
                continue

            yield line


StatementSource = InlineStatement | FileStatements
"""StatementSource is the origin of SQL text to execute."""


@contextmanager
def read_statements(sources: Iterable[StatementSource]) -> Generator[Iterator[str], None, None]:
    """Chains statements from the provided sources, preserving their order.

    All files are opened upfront, on entry to the with block, so that a missing file
    is reported before any statement is executed.
    """
    with ExitStack() as stack:
        iterators = [
            source.statements()
            if isinstance(source, InlineStatement)
            else stack.enter_context(source.open())
            for source in sources
        ]
        yield chain.from_iterable(iterators)
