# © Copyright 2022-2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import os
from pathlib import Path
from shutil import rmtree
from tempfile import mkdtemp, mkstemp
from typing import Any, Optional


class MockFile:
    """MockFile creates a temporary file (or directory) for testing purposes.
    The file must be removed after usage by calling mock_file.cleanup().
    This action is automatically performed if MockFile is used in a with statement.

    >>> with MockFile(suffix=".sql") as f:
    ...     _ = f.write_text("SELECT 1;\\n")
    ...     f.read_text()
    'SELECT 1;\\n'
    """

    path: Path

    def __init__(
        self, prefix: str = "startsql-test", suffix: Optional[str] = None, directory: bool = False
    ) -> None:
        if directory:
            path = mkdtemp(prefix=prefix, suffix=suffix)
        else:
            handle, path = mkstemp(prefix=prefix, suffix=suffix)
            os.close(handle)
        self.path = Path(path)

    def __enter__(self) -> Path:
        return self.path

    def __exit__(self, *_: Any) -> bool:
        self.cleanup()
        return False

    def cleanup(self) -> None:
        if self.path.is_dir():
            rmtree(self.path)
        elif self.path.exists():
            self.path.unlink()

    def write_statements(self, *lines: str) -> Path:
        """Writes the provided lines into the file, each terminated with a newline.
        Returns the path to the file."""
        self.path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return self.path
