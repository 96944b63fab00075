from __future__ import annotations

import logging
import os
from typing import Callable, List

from .paths import resolve_path
from .types import Browser

LOGGER = logging.getLogger("BrowserLauncher.Probe")

ResolvePathFunc = Callable[[Browser], "str | None"]


def is_installed(path: str | os.PathLike[str] | None) -> bool:
    """Check whether an executable exists at ``path``. Never raises."""

    if not path:
        return False
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    except OSError as exc:
        LOGGER.debug("Unable to inspect %s: %s", path, exc)
        return False
    return True


def list_installed(resolve: ResolvePathFunc = resolve_path) -> List[Browser]:
    """Return every known browser whose executable exists on this host."""

    installed = [browser for browser in Browser if is_installed(resolve(browser))]
    LOGGER.debug("Installed browsers: %s", [b.value for b in installed] or "(none)")
    return installed
