# © Copyright 2022-2025 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

# pyright: reportConstantRedefinition=false
import os

ENABLED = not os.getenv("NO_COLOR")
"""ENABLED is ``False`` if the ``NO_COLOR`` environment variable is set to a non-empty value,
see https://no-color.org/."""

if ENABLED:
    RESET = "\x1b[0m"
    DIM = "\x1b[2m"

    RED = "\x1b[31m"
    GREEN = "\x1b[32m"
    YELLOW = "\x1b[33m"
    BLUE = "\x1b[34m"
    MAGENTA = "\x1b[35m"
    CYAN = "\x1b[36m"
    WHITE = "\x1b[37m"

    BG_RED = "\x1b[41m"

else:
    RESET = ""
    DIM = ""

    RED = ""
    GREEN = ""
    YELLOW = ""
    BLUE = ""
    MAGENTA = ""
    CYAN = ""
    WHITE = ""

    BG_RED = ""
