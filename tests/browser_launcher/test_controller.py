from __future__ import annotations

import itertools
import signal
from pathlib import Path
from typing import Any, Callable, List, Sequence

import click
import pytest

from browser_launcher.controller import (
    INTERRUPT_EXIT_CODE,
    LifecycleController,
    NoBrowsersInstalledError,
    build_launch_spec,
)
from browser_launcher.config import LaunchOptions
from browser_launcher.launcher import LaunchError
from browser_launcher.probe import list_installed
from browser_launcher.types import Browser, BrowserProcess, ControllerState, LaunchAnswers

_PIDS = itertools.count(1000)


class DummyProcess:
    def __init__(self) -> None:
        self._running = True
        self.pid = next(_PIDS)
        self.returncode: int | None = None

    def poll(self) -> int | None:
        return None if self._running else self.returncode

    def terminate(self) -> None:
        self._running = False
        self.returncode = -15


class RecordingProvider:
    def __init__(self, answers: LaunchAnswers) -> None:
        self.answers = answers
        self.calls: List[tuple[list[Browser], bool]] = []

    def ask(self, installed: Sequence[Browser], *, full: bool) -> LaunchAnswers:
        self.calls.append((list(installed), full))
        return self.answers


class Harness:
    """Collects the side effects a controller performs."""

    def __init__(self) -> None:
        self.launches: List[dict[str, Any]] = []
        self.kills: List[BrowserProcess | None] = []
        self.handlers: dict[int, Callable[..., Any]] = {}
        self.exits: List[int] = []

    def launch(self, browser: Browser, url: str, flags: List[str], **kwargs: Any) -> BrowserProcess:
        self.launches.append({"browser": browser, "url": url, "flags": flags, **kwargs})
        return BrowserProcess(
            executable=f"/usr/bin/{browser.value}",
            args=[*flags, url],
            process=DummyProcess(),  # type: ignore[arg-type]
            browser=browser,
        )

    def kill(self, process: BrowserProcess | None) -> None:
        self.kills.append(process)

    def install(self, signum: int, handler: Callable[..., Any]) -> None:
        self.handlers[signum] = handler

    def exit(self, code: int) -> None:
        self.exits.append(code)

    def controller(
        self,
        provider: RecordingProvider,
        installed: Sequence[Browser] = (Browser.CHROME,),
        **kwargs: Any,
    ) -> LifecycleController:
        return LifecycleController(
            provider,
            list_installed_fn=lambda: list(installed),
            launch_fn=self.launch,
            kill_fn=self.kill,
            signal_fn=self.install,
            exit_fn=self.exit,
            **kwargs,
        )


def test_launch_reaches_running_and_installs_interrupt_handler() -> None:
    harness = Harness()
    provider = RecordingProvider(LaunchAnswers(browser=Browser.CHROME))
    controller = harness.controller(provider)
    assert controller.state is ControllerState.IDLE

    process = controller.launch({"port": 9222, "startingUrl": "https://example.com"})

    assert controller.state is ControllerState.RUNNING
    assert controller.process is process
    assert provider.calls == [([Browser.CHROME], False)]
    assert harness.launches[0]["url"] == "https://example.com"
    assert harness.launches[0]["flags"] == [
        "--remote-debugging-port=9222",
        "--no-default-browser-check",
    ]
    assert list(harness.handlers) == [signal.SIGINT]


def test_interrupt_kills_browser_once_and_terminates(tmp_path: Path) -> None:
    executable = tmp_path / "google-chrome"
    executable.write_text("", encoding="utf-8")

    def resolve(browser: Browser) -> str | None:
        return str(executable) if browser is Browser.CHROME else None

    harness = Harness()
    provider = RecordingProvider(LaunchAnswers(browser=Browser.CHROME, ignore_signal=False))
    controller = LifecycleController(
        provider,
        list_installed_fn=lambda: list_installed(resolve),
        launch_fn=harness.launch,
        kill_fn=harness.kill,
        signal_fn=harness.install,
        exit_fn=harness.exit,
    )

    process = controller.launch(LaunchOptions(port=9222))
    harness.handlers[signal.SIGINT](signal.SIGINT, None)

    assert harness.kills == [process]
    assert controller.state is ControllerState.TERMINATED
    assert harness.exits == [INTERRUPT_EXIT_CODE]


def test_ignore_signal_leaves_browser_alone() -> None:
    harness = Harness()
    provider = RecordingProvider(LaunchAnswers(browser=Browser.CHROME, ignore_signal=True))
    controller = harness.controller(provider)

    controller.launch()

    assert harness.handlers == {}
    assert harness.kills == []
    assert controller.state is ControllerState.RUNNING


def test_ignore_signal_option_used_when_answer_absent() -> None:
    harness = Harness()
    controller = harness.controller(RecordingProvider(LaunchAnswers(browser=Browser.CHROME)))

    controller.launch(LaunchOptions(ignore_signal=True))

    assert harness.handlers == {}


def test_signal_handling_can_be_disabled() -> None:
    harness = Harness()
    controller = harness.controller(
        RecordingProvider(LaunchAnswers(browser=Browser.CHROME)), handle_signals=False
    )
    controller.launch()
    assert harness.handlers == {}


def test_no_installed_browsers_terminates_without_launch() -> None:
    harness = Harness()
    provider = RecordingProvider(LaunchAnswers(browser=Browser.CHROME))
    controller = harness.controller(provider, installed=())

    with pytest.raises(NoBrowsersInstalledError):
        controller.launch()

    assert controller.state is ControllerState.TERMINATED
    assert provider.calls == []
    assert harness.launches == []


def test_answer_outside_installed_set_is_rejected() -> None:
    harness = Harness()
    controller = harness.controller(
        RecordingProvider(LaunchAnswers(browser=Browser.EDGE)), installed=(Browser.BRAVE,)
    )

    with pytest.raises(LaunchError):
        controller.launch()
    assert controller.state is ControllerState.TERMINATED
    assert harness.launches == []


def test_spawn_failure_terminates_without_handler() -> None:
    harness = Harness()

    def failing_launch(*args: Any, **kwargs: Any) -> BrowserProcess:
        raise LaunchError("permission denied")

    controller = LifecycleController(
        RecordingProvider(LaunchAnswers(browser=Browser.CHROME)),
        list_installed_fn=lambda: [Browser.CHROME],
        launch_fn=failing_launch,
        kill_fn=harness.kill,
        signal_fn=harness.install,
        exit_fn=harness.exit,
    )

    with pytest.raises(LaunchError):
        controller.launch()
    assert controller.state is ControllerState.TERMINATED
    assert controller.process is None
    assert harness.handlers == {}


def test_controller_launches_only_once() -> None:
    harness = Harness()
    controller = harness.controller(RecordingProvider(LaunchAnswers(browser=Browser.CHROME)))
    controller.launch()
    with pytest.raises(RuntimeError):
        controller.launch()


def test_explicit_kill_terminates_running_browser() -> None:
    harness = Harness()
    controller = harness.controller(RecordingProvider(LaunchAnswers(browser=Browser.CHROME)))
    process = controller.launch()

    controller.kill()
    controller.kill()

    assert harness.kills == [process]
    assert controller.state is ControllerState.TERMINATED


def test_kill_before_launch_reports_missing_process() -> None:
    harness = Harness()
    controller = harness.controller(RecordingProvider(LaunchAnswers(browser=Browser.CHROME)))
    controller.kill()
    assert harness.kills == [None]
    assert controller.state is ControllerState.TERMINATED


def test_full_ask_answers_shape_the_launch() -> None:
    harness = Harness()
    provider = RecordingProvider(
        LaunchAnswers(
            browser=Browser.BRAVE,
            url="https://answer.test",
            flags="--incognito --mute-audio",
        )
    )
    controller = harness.controller(provider, installed=(Browser.CHROME, Browser.BRAVE))

    controller.launch(
        {
            "fullAsk": True,
            "port": 9333,
            "chromeFlags": ["--headless=new"],
            "userDataDir": "/tmp/ud",
            "startingUrl": "https://option.test",
        }
    )

    assert provider.calls == [([Browser.CHROME, Browser.BRAVE], True)]
    launch = harness.launches[0]
    assert launch["browser"] is Browser.BRAVE
    assert launch["url"] == "https://answer.test"
    assert launch["flags"] == [
        "--incognito",
        "--mute-audio",
        "--remote-debugging-port=9333",
        "--headless=new",
        "--user-data-dir=/tmp/ud",
        "--no-default-browser-check",
    ]


def test_build_launch_spec_defaults() -> None:
    spec = build_launch_spec(LaunchOptions(), LaunchAnswers(browser=Browser.VIVALDI, url=""))

    assert spec.starting_url == ""
    assert spec.ignore_signal is False
    assert spec.port is None
    assert spec.command_flags() == ["--no-default-browser-check"]


def test_installed_lookup_runs_while_awaiting_selection() -> None:
    harness = Harness()
    seen: List[ControllerState] = []
    controller: LifecycleController

    def installed() -> List[Browser]:
        seen.append(controller.state)
        return [Browser.CHROME]

    controller = LifecycleController(
        RecordingProvider(LaunchAnswers(browser=Browser.CHROME)),
        list_installed_fn=installed,
        launch_fn=harness.launch,
        kill_fn=harness.kill,
        signal_fn=harness.install,
        exit_fn=harness.exit,
    )
    controller.launch()

    assert seen == [ControllerState.AWAITING_SELECTION]


def test_cancelled_selection_terminates() -> None:
    class CancellingProvider:
        def ask(self, installed: Sequence[Browser], *, full: bool) -> LaunchAnswers:
            raise click.exceptions.Abort()

    harness = Harness()
    controller = LifecycleController(
        CancellingProvider(),
        list_installed_fn=lambda: [Browser.CHROME],
        launch_fn=harness.launch,
        kill_fn=harness.kill,
        signal_fn=harness.install,
        exit_fn=harness.exit,
    )

    with pytest.raises(click.exceptions.Abort):
        controller.launch()
    assert controller.state is ControllerState.TERMINATED
    assert harness.launches == []
    assert harness.handlers == {}
