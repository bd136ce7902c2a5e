# © Copyright 2022-2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from dataclasses import replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigurationError
from .options import StartSQLOptions
from .tools.types import StrPath

__all__ = ["load_options", "options_from_mapping"]

_KEYS: Mapping[str, tuple[str, type]] = {
    "database": ("database", str),
    "statement": ("statement", str),
    "file": ("statement_file", str),
    "max_line_length": ("max_line_length", int),
    "create_database": ("create_database", bool),
    "status_file": ("status_file", str),
    "worker_name": ("worker_name", str),
}

_PATH_FIELDS = {"statement_file", "status_file"}


def options_from_mapping(
    data: Mapping[str, Any],
    base: StartSQLOptions = StartSQLOptions(),
) -> StartSQLOptions:
    """Creates StartSQLOptions by overriding attributes of ``base`` with values from
    the provided mapping. Keys equal to None are ignored.

    >>> options_from_mapping({"database": "app.db", "statement": "SELECT 1"}).database
    'app.db'
    >>> options_from_mapping({"foo": 1})
    Traceback (most recent call last):
    ...
    startsql.errors.ConfigurationError: unknown configuration key: foo
    """
    changes: dict[str, Any] = {}
    for key, value in data.items():
        if key not in _KEYS:
            raise ConfigurationError(f"unknown configuration key: {key}")
        if value is None:
            continue

        attribute, typ = _KEYS[key]
        # bool is a subclass of int - but "max_line_length: true" is surely a mistake
        if not isinstance(value, typ) or (typ is int and isinstance(value, bool)):
            raise ConfigurationError(
                f"{key}: expected {typ.__name__}, got {type(value).__name__}"
            )

        changes[attribute] = Path(value) if attribute in _PATH_FIELDS else value

    return replace(base, **changes)


def load_options(path: StrPath, base: StartSQLOptions = StartSQLOptions()) -> StartSQLOptions:
    """Loads StartSQLOptions from a YAML file with a single mapping.
    Relative file paths in the configuration are resolved against the current
    working directory, not against the configuration file.
    """
    try:
        with open(path, mode="r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"{path}: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"{path}: invalid YAML: {e}") from e

    if data is None:
        data = {}
    elif not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a mapping, got {type(data).__name__}")

    return options_from_mapping(data, base)
