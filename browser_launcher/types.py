from __future__ import annotations

import subprocess
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

from .flags import compose_flags


class Browser(str, Enum):
    """Browsers the launcher knows how to locate."""

    CHROME = "chrome"
    BRAVE = "brave"
    VIVALDI = "vivaldi"
    EDGE = "edge"

    def __str__(self) -> str:
        return self.value


class PlatformKey(str, Enum):
    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"


class ControllerState(str, Enum):
    IDLE = "idle"
    AWAITING_SELECTION = "awaiting_selection"
    COMPOSING = "composing"
    RUNNING = "running"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class LaunchAnswers:
    """Choices returned by an answer provider. ``None`` marks an absent field."""

    browser: Browser
    url: Optional[str] = None
    flags: Optional[str] = None
    ignore_signal: Optional[bool] = None


@dataclass(frozen=True)
class LaunchSpec:
    """Everything needed to start one browser process."""

    browser: Browser
    starting_url: str = ""
    flags: tuple[str, ...] = ()
    extra_flags: tuple[str, ...] = ()
    port: int | None = None
    user_data_dir: Path | None = None
    ignore_default_flags: bool = True
    ignore_signal: bool = False

    def command_flags(self) -> List[str]:
        return compose_flags(
            self.flags,
            self.port,
            self.extra_flags,
            self.user_data_dir,
            self.ignore_default_flags,
        )


@dataclass
class BrowserProcess:
    """Handle on a detached browser process."""

    executable: str
    args: Sequence[str]
    process: subprocess.Popen[bytes]
    exit_code: Future[int] = field(default_factory=Future)
    browser: Browser | None = None
    log_path: Optional[Path] = None

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def running(self) -> bool:
        return self.process.poll() is None

    def poll(self) -> int | None:
        return self.process.poll()
