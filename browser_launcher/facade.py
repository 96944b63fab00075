"""Top-level entry points mirroring the launcher's public API."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Mapping

from .answers import AnswerProvider, PromptAnswerProvider
from .config import LaunchOptions
from .controller import LifecycleController, NoBrowsersInstalledError
from .launcher import kill_browser, launch_browser
from .probe import list_installed
from .types import Browser, BrowserProcess

LOGGER = logging.getLogger("BrowserLauncher")

__all__ = ["get_installed_browsers", "kill_browser", "launch", "launch_browser"]


def get_installed_browsers() -> List[Browser]:
    return list_installed()


def launch(
    options: LaunchOptions | Mapping[str, Any] | None = None,
    *,
    answer_provider: AnswerProvider | None = None,
    show_output: bool | None = None,
    log_dir: Path | None = None,
) -> BrowserProcess | None:
    """Prompt for a browser and launch it with ``options``.

    Returns ``None`` when no supported browser is installed. Launch failures
    propagate as ``LaunchError``.
    """

    controller = LifecycleController(
        answer_provider or PromptAnswerProvider(),
        show_output=show_output,
        log_dir=log_dir,
    )
    try:
        return controller.launch(options)
    except NoBrowsersInstalledError as exc:
        LOGGER.error("%s", exc)
        return None
