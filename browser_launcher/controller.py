from __future__ import annotations

import functools
import logging
import signal
import sys
from pathlib import Path
from types import FrameType
from typing import Any, Callable, Mapping, Sequence

from .answers import AnswerProvider
from .config import LaunchOptions
from .flags import split_flag_string
from .launcher import LaunchError, kill_browser, launch_browser
from .paths import is_special_url
from .probe import list_installed
from .types import Browser, BrowserProcess, ControllerState, LaunchAnswers, LaunchSpec

LOGGER = logging.getLogger("BrowserLauncher.Controller")

INTERRUPT_EXIT_CODE = 130

ListInstalledFunc = Callable[[], Sequence[Browser]]
LaunchBrowserFunc = Callable[..., BrowserProcess]
KillBrowserFunc = Callable[["BrowserProcess | None"], None]
SignalFunc = Callable[[int, Any], Any]
ExitFunc = Callable[[int], Any]


class NoBrowsersInstalledError(RuntimeError):
    """Raised when none of the supported browsers exist on this host."""


class LifecycleController:
    """Drive one browser launch from discovery to termination."""

    def __init__(
        self,
        answer_provider: AnswerProvider,
        *,
        handle_signals: bool = True,
        show_output: bool | None = None,
        log_dir: Path | None = None,
        list_installed_fn: ListInstalledFunc = list_installed,
        launch_fn: LaunchBrowserFunc = launch_browser,
        kill_fn: KillBrowserFunc = kill_browser,
        signal_fn: SignalFunc = signal.signal,
        exit_fn: ExitFunc = sys.exit,
    ) -> None:
        self._answers = answer_provider
        self._handle_signals = handle_signals
        self._show_output = show_output
        self._log_dir = log_dir
        self._list_installed = list_installed_fn
        self._launch = launch_fn
        self._kill = kill_fn
        self._signal = signal_fn
        self._exit = exit_fn
        self._state = ControllerState.IDLE
        self._process: BrowserProcess | None = None
        self._spec: LaunchSpec | None = None

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def process(self) -> BrowserProcess | None:
        return self._process

    @property
    def spec(self) -> LaunchSpec | None:
        return self._spec

    def launch(
        self, options: LaunchOptions | Mapping[str, Any] | None = None
    ) -> BrowserProcess:
        """Select, compose and start a browser; returns the running handle."""

        if self._state is not ControllerState.IDLE:
            raise RuntimeError(f"Controller cannot launch from state '{self._state.value}'.")

        options = LaunchOptions.coerce(options)
        LOGGER.debug("Launch options: %s", options.model_dump(by_alias=True))

        self._state = ControllerState.AWAITING_SELECTION
        installed = list(self._list_installed())
        if not installed:
            self._state = ControllerState.TERMINATED
            raise NoBrowsersInstalledError("No supported browsers are installed.")

        try:
            answers = self._answers.ask(installed, full=options.full_ask)
        except Exception:
            self._state = ControllerState.TERMINATED
            raise

        self._state = ControllerState.COMPOSING
        if answers.browser not in installed:
            self._state = ControllerState.TERMINATED
            raise LaunchError(f"Browser '{answers.browser}' is not installed.")

        spec = build_launch_spec(options, answers)
        LOGGER.info("Launching browser with log level: %s", options.log_level)
        if is_special_url(spec.starting_url):
            LOGGER.debug("Starting URL %s is a browser-internal page.", spec.starting_url)

        try:
            process = self._launch(
                spec.browser,
                spec.starting_url,
                spec.command_flags(),
                show_output=self._show_output,
                log_dir=self._log_dir,
            )
        except LaunchError:
            self._state = ControllerState.TERMINATED
            raise

        self._spec = spec
        self._process = process
        self._state = ControllerState.RUNNING

        if self._handle_signals and not spec.ignore_signal:
            self._signal(signal.SIGINT, functools.partial(self._on_interrupt, process))
        return process

    def kill(self) -> None:
        """Terminate the supervised browser, if any. Terminated is final."""

        if self._state is ControllerState.TERMINATED and self._process is not None:
            LOGGER.debug("Browser process already terminated.")
            return
        self._kill(self._process)
        self._state = ControllerState.TERMINATED

    def wait(self, timeout: float | None = None) -> int:
        """Block until the browser exits and return its exit code."""

        if self._process is None:
            raise RuntimeError("No browser process has been launched.")
        return self._process.exit_code.result(timeout=timeout)

    def _on_interrupt(
        self, process: BrowserProcess, signum: int, frame: FrameType | None
    ) -> None:
        LOGGER.info("Received SIGINT. Killing browser process...")
        self._kill(process)
        self._state = ControllerState.TERMINATED
        self._exit(INTERRUPT_EXIT_CODE)


def build_launch_spec(options: LaunchOptions, answers: LaunchAnswers) -> LaunchSpec:
    """Combine caller options with provider answers."""

    ignore_signal = (
        answers.ignore_signal
        if answers.ignore_signal is not None
        else options.ignore_signal
    )
    return LaunchSpec(
        browser=answers.browser,
        starting_url=answers.url or options.starting_url,
        flags=tuple(split_flag_string(answers.flags)),
        extra_flags=tuple(options.chrome_flags),
        port=options.port,
        user_data_dir=options.user_data_dir,
        ignore_default_flags=options.ignore_default_flags,
        ignore_signal=ignore_signal,
    )
