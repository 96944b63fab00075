"""Assemble the command-line flags handed to a browser executable."""

from __future__ import annotations

import os
from typing import Iterable, List

REMOTE_DEBUGGING_PORT_FLAG = "--remote-debugging-port"
USER_DATA_DIR_FLAG = "--user-data-dir"
NO_DEFAULT_BROWSER_CHECK_FLAG = "--no-default-browser-check"


def split_flag_string(raw: str | None) -> List[str]:
    """Tokenize a space-separated flag string typed by a user."""

    if not raw:
        return []
    return raw.split()


def compose_flags(
    base_flags: Iterable[str],
    port: int | None,
    extra_flags: Iterable[str],
    user_data_dir: str | os.PathLike[str] | None,
    ignore_default_flags: bool,
) -> List[str]:
    """Merge flag sources in launch order, dropping empty tokens.

    Order is fixed: ``base_flags``, the remote debugging port, ``extra_flags``,
    the user data directory, then ``--no-default-browser-check``. Conflicting
    flags are passed through untouched.
    """

    tokens: list[str] = [*base_flags]
    tokens.append(f"{REMOTE_DEBUGGING_PORT_FLAG}={port}" if port is not None else "")
    tokens.extend(extra_flags)
    tokens.append(
        f"{USER_DATA_DIR_FLAG}={os.fspath(user_data_dir)}" if user_data_dir else ""
    )
    tokens.append(NO_DEFAULT_BROWSER_CHECK_FLAG if ignore_default_flags else "")
    return [token for token in tokens if token]
