# © Copyright 2022-2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import signal
import threading
from types import FrameType
from typing import Any, Optional

__all__ = ["CancellationToken", "install_signal_handlers", "restore_signal_handlers"]


class CancellationToken:
    """CancellationToken records requests coming from the host: to reload the configuration
    and to terminate.

    Both are advisory for a one-shot task. The terminate request is only acted upon at safe
    points, between statements; an in-flight statement is never interrupted.
    Any thread blocked in :py:meth:`wait` is woken up by either request.
    """

    def __init__(self) -> None:
        self._terminate = threading.Event()
        self._reload = threading.Event()
        self._wakeup = threading.Event()

    @property
    def terminate_requested(self) -> bool:
        return self._terminate.is_set()

    @property
    def reload_requested(self) -> bool:
        return self._reload.is_set()

    def request_terminate(self) -> None:
        self._terminate.set()
        self._wakeup.set()

    def request_reload(self) -> None:
        self._reload.set()
        self._wakeup.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Blocks until any request arrives, or until the timeout elapses.
        Returns True if woken up by a request. The wakeup is consumed."""
        woken = self._wakeup.wait(timeout)
        self._wakeup.clear()
        return woken


def install_signal_handlers(token: CancellationToken) -> dict[int, Any]:
    """Installs SIGHUP (reload) and SIGTERM (terminate) handlers forwarding
    to the provided token. Returns the previously installed handlers, keyed by signal number.

    Must be called from the main thread. SIGHUP is not available on Windows
    and is silently ignored there.
    """

    def on_terminate(signum: int, _: Optional[FrameType]) -> None:
        token.request_terminate()

    def on_reload(signum: int, _: Optional[FrameType]) -> None:
        token.request_reload()

    previous: dict[int, Any] = {}
    previous[signal.SIGTERM] = signal.signal(signal.SIGTERM, on_terminate)

    sighup = getattr(signal, "SIGHUP", None)
    if sighup is not None:
        previous[sighup] = signal.signal(sighup, on_reload)

    return previous


def restore_signal_handlers(previous: dict[int, Any]) -> None:
    """Reinstalls signal handlers returned by :py:func:`install_signal_handlers`."""
    for signum, handler in previous.items():
        signal.signal(signum, handler)
