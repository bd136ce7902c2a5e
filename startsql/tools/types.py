# © Copyright 2022-2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from os import PathLike
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from typing_extensions import Self
else:
    Self = TypeVar("Self")


StrPath = str | PathLike[str]
"""StrPath represents anything which can be interpreted as a string-based path."""
