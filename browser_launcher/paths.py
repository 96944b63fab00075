from __future__ import annotations

import re
import sys
from types import MappingProxyType
from typing import Mapping

from .types import Browser, PlatformKey

_WINDOWS = PlatformKey.WINDOWS
_MACOS = PlatformKey.MACOS
_LINUX = PlatformKey.LINUX

PATH_TABLE: Mapping[Browser, Mapping[PlatformKey, str]] = MappingProxyType(
    {
        Browser.CHROME: MappingProxyType(
            {
                _WINDOWS: "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
                _MACOS: "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
                _LINUX: "/usr/bin/google-chrome",
            }
        ),
        Browser.BRAVE: MappingProxyType(
            {
                _WINDOWS: "C:\\Program Files\\BraveSoftware\\Brave-Browser\\Application\\brave.exe",
                _MACOS: "/Applications/Brave Browser.app/Contents/MacOS/Brave Browser",
                _LINUX: "/usr/bin/brave-browser",
            }
        ),
        Browser.VIVALDI: MappingProxyType(
            {
                _WINDOWS: "C:\\Program Files\\Vivaldi\\Application\\vivaldi.exe",
                _MACOS: "/Applications/Vivaldi.app/Contents/MacOS/Vivaldi",
                _LINUX: "/usr/bin/vivaldi",
            }
        ),
        Browser.EDGE: MappingProxyType(
            {
                _WINDOWS: "C:\\Program Files (x86)\\Microsoft\\Edge\\Application\\msedge.exe",
                _MACOS: "/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge",
                _LINUX: "/usr/bin/microsoft-edge",
            }
        ),
    }
)

_SPECIAL_URL = re.compile(r"^(chrome|vivaldi|brave|edge)")


def current_platform() -> PlatformKey | None:
    """Map ``sys.platform`` onto a path table column."""

    if sys.platform.startswith("win"):
        return PlatformKey.WINDOWS
    if sys.platform == "darwin":
        return PlatformKey.MACOS
    if sys.platform.startswith("linux"):
        return PlatformKey.LINUX
    return None


def resolve_path(
    browser: Browser, platform: PlatformKey | None = None
) -> str | None:
    """Return the executable path for ``browser`` on this host, if known."""

    if platform is None:
        platform = current_platform()
    if platform is None:
        return None
    return PATH_TABLE[Browser(browser)].get(platform)


def is_special_url(url: str) -> bool:
    """True for browser-internal pages such as ``chrome://version``."""

    return bool(_SPECIAL_URL.match(url))
