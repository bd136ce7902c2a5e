# © Copyright 2022-2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import json
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional

from .errors import ActivityReportError

__all__ = [
    "ActivityState",
    "Activity",
    "ActivityReporter",
    "LogActivityReporter",
    "FileActivityReporter",
    "MultiActivityReporter",
]

logger = logging.getLogger(__name__)


class ActivityState(Enum):
    RUNNING = "running"
    IDLE = "idle"
    FAILED = "failed"


@dataclass(frozen=True)
class Activity:
    """Activity is a snapshot of what a startup task is doing, as seen by
    external monitoring."""

    worker: str
    state: ActivityState
    query: Optional[str] = None
    since: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_json(self) -> dict[str, Any]:
        return {
            "worker": self.worker,
            "state": self.state.value,
            "query": self.query,
            "since": self.since.isoformat(),
        }


class ActivityReporter(ABC):
    """ActivityReporter receives activity updates of a startup task."""

    @abstractmethod
    def report(self, activity: Activity) -> None: ...


class LogActivityReporter(ActivityReporter):
    """LogActivityReporter writes activity updates as DEBUG log messages."""

    def report(self, activity: Activity) -> None:
        if activity.query is None:
            logger.debug("%s: %s", activity.worker, activity.state.value)
        else:
            logger.debug("%s: %s: %s", activity.worker, activity.state.value, activity.query)


class FileActivityReporter(ActivityReporter):
    """FileActivityReporter publishes the most recent activity as a JSON object in a file.

    The file is replaced atomically, so readers always see a complete object.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def report(self, activity: Activity) -> None:
        """Writes the activity to the status file.

        Raises :py:exc:`~startsql.errors.ActivityReportError` if the file can't be written.
        """
        temp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            with temp_path.open(mode="w", encoding="utf-8") as f:
                json.dump(activity.as_json(), f, indent=2)
            os.replace(temp_path, self.path)
        except OSError as e:
            raise ActivityReportError(self.path, e.strerror or str(e)) from e

    def read(self) -> Optional[Activity]:
        """Reads the last reported activity, or returns None if nothing was reported yet."""
        try:
            with self.path.open(mode="r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None

        return Activity(
            worker=data["worker"],
            state=ActivityState(data["state"]),
            query=data["query"],
            since=datetime.fromisoformat(data["since"]),
        )


class MultiActivityReporter(ActivityReporter):
    """MultiActivityReporter forwards every activity update to all of the provided reporters."""

    def __init__(self, reporters: Iterable[ActivityReporter]) -> None:
        self.reporters = list(reporters)

    def report(self, activity: Activity) -> None:
        for reporter in self.reporters:
            reporter.report(activity)
