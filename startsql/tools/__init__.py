# © Copyright 2022-2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from . import color, logs, testing_mocks, types

__all__ = ["color", "logs", "testing_mocks", "types"]
