from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List

from .config import DEFAULT_TERMINATE_TIMEOUT
from .launcher import terminate_browser
from .types import BrowserProcess, LaunchSpec

LOGGER = logging.getLogger("BrowserLauncher.Registry")

TerminateFunc = Callable[[BrowserProcess, float], "int | None"]


@dataclass
class TrackedBrowser:
    """A launched browser together with the spec it was started from."""

    process: BrowserProcess
    spec: LaunchSpec

    @property
    def keep_running(self) -> bool:
        return self.spec.ignore_signal


class ProcessRegistry:
    """Track browsers launched through the HTTP API, keyed by PID."""

    def __init__(
        self,
        *,
        terminate_fn: TerminateFunc = terminate_browser,
        terminate_timeout: float = DEFAULT_TERMINATE_TIMEOUT,
    ) -> None:
        self._entries: dict[int, TrackedBrowser] = {}
        self._terminate = terminate_fn
        self._timeout = terminate_timeout
        self._lock = threading.Lock()

    def add(self, process: BrowserProcess, spec: LaunchSpec) -> TrackedBrowser:
        entry = TrackedBrowser(process=process, spec=spec)
        with self._lock:
            self._entries[process.pid] = entry
        return entry

    def get(self, pid: int) -> TrackedBrowser | None:
        with self._lock:
            return self._entries.get(pid)

    def remove(self, pid: int) -> TrackedBrowser | None:
        with self._lock:
            return self._entries.pop(pid, None)

    def entries(self) -> List[TrackedBrowser]:
        with self._lock:
            return list(self._entries.values())

    def shutdown(self) -> None:
        """Terminate every tracked browser not launched to keep running."""

        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
        for entry in entries:
            if entry.keep_running:
                LOGGER.info(
                    "Leaving browser PID=%s running detached.", entry.process.pid
                )
                continue
            code = self._terminate(entry.process, self._timeout)
            LOGGER.info("Browser PID=%s stopped with code %s.", entry.process.pid, code)
