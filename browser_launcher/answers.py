"""
Answer providers supply the user's launch choices to the lifecycle controller.

A provider receives the browsers installed on this host and returns a
`LaunchAnswers`. The terminal provider asks interactively; the static provider
replays answers that were already collected elsewhere (CLI flags, HTTP request
bodies). Additional sources can be plugged in by implementing `AnswerProvider`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol, Sequence, runtime_checkable

import click

from .types import Browser, LaunchAnswers

LOGGER = logging.getLogger("BrowserLauncher.Answers")

PromptFunc = Callable[..., Any]
ConfirmFunc = Callable[..., bool]


@runtime_checkable
class AnswerProvider(Protocol):
    """Protocol for collecting launch choices."""

    def ask(self, installed: Sequence[Browser], *, full: bool) -> LaunchAnswers: ...


class PromptAnswerProvider:
    """Asks for launch choices on the controlling terminal."""

    def __init__(
        self,
        *,
        prompt_fn: PromptFunc = click.prompt,
        confirm_fn: ConfirmFunc = click.confirm,
    ) -> None:
        self._prompt = prompt_fn
        self._confirm = confirm_fn

    def ask(self, installed: Sequence[Browser], *, full: bool) -> LaunchAnswers:
        choices = [browser.value for browser in installed]
        selected = self._prompt(
            "Select a browser to launch",
            type=click.Choice(choices),
            default=choices[0],
        )
        browser = Browser(selected)
        if not full:
            return LaunchAnswers(browser=browser)

        url = self._prompt(
            "Enter the URL to open (optional)", default="", show_default=False
        )
        flags = self._prompt(
            "Enter command line flags (optional, space-separated)",
            default="",
            show_default=False,
        )
        ignore_signal = self._confirm(
            "Ignore SIGINT signal (Ctrl+C) to keep the browser running?",
            default=False,
        )
        return LaunchAnswers(
            browser=browser, url=url, flags=flags, ignore_signal=ignore_signal
        )


class StaticAnswerProvider:
    """Returns answers fixed up front."""

    def __init__(self, answers: LaunchAnswers) -> None:
        self._answers = answers

    def ask(self, installed: Sequence[Browser], *, full: bool) -> LaunchAnswers:
        LOGGER.debug("Using preset answers for %s.", self._answers.browser.value)
        return self._answers
