from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .types import Browser

DEFAULT_DEBUG_PORT = 9222
DEFAULT_LOG_LEVEL = "silent"
DEFAULT_API_HOST = "127.0.0.1"
DEFAULT_API_PORT = 2049
DEFAULT_READY_TIMEOUT = 30.0
DEFAULT_TERMINATE_TIMEOUT = 10.0
SHOW_BROWSER_ENV = "BROWSER_LAUNCHER_SHOW_BROWSER"

_TRUTHY = {"1", "true", "yes", "on"}


def show_browser_output(env: Mapping[str, str] | None = None) -> bool:
    """Whether browser stdout/stderr should be forwarded to the log."""

    source = os.environ if env is None else env
    return source.get(SHOW_BROWSER_ENV, "").strip().lower() in _TRUTHY


class LaunchOptions(BaseModel):
    """Options accepted by ``launch``.

    Field names may be given in snake_case or in the camelCase form
    (``chromeFlags``, ``userDataDir``...). Unknown keys are rejected.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    log_level: str = DEFAULT_LOG_LEVEL
    port: int | None = Field(default=None, ge=1, le=65535)
    chrome_flags: tuple[str, ...] = ()
    user_data_dir: Path | None = None
    starting_url: str = ""
    ignore_default_flags: bool = True
    full_ask: bool = False
    ignore_signal: bool = False

    @field_validator("user_data_dir", mode="before")
    @classmethod
    def _false_disables_user_data_dir(cls, value: Any) -> Any:
        if value is False or value == "":
            return None
        return value

    @classmethod
    def coerce(
        cls, options: "LaunchOptions | Mapping[str, Any] | None"
    ) -> "LaunchOptions":
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls.model_validate(dict(options))


@dataclass(frozen=True)
class LauncherCLIArgs:
    """Typed representation of CLI arguments used to boot the launcher."""

    options: LaunchOptions
    browser: Browser | None = None
    list_only: bool = False
    show_browser: bool = False
    browser_log_dir: Path | None = None
    wait_ready: bool = False
    ready_timeout: float = DEFAULT_READY_TIMEOUT
    serve: bool = False
    api_host: str = DEFAULT_API_HOST
    api_port: int = DEFAULT_API_PORT
