from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Sequence

import click
import uvicorn
from pydantic import ValidationError

from .answers import AnswerProvider, PromptAnswerProvider, StaticAnswerProvider
from .api import create_app
from .config import (
    DEFAULT_API_HOST,
    DEFAULT_API_PORT,
    DEFAULT_DEBUG_PORT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_READY_TIMEOUT,
    SHOW_BROWSER_ENV,
    LauncherCLIArgs,
    LaunchOptions,
    show_browser_output,
)
from .controller import LifecycleController, NoBrowsersInstalledError
from .flags import split_flag_string
from .health import wait_for_debugger
from .launcher import LaunchError
from .probe import list_installed
from .registry import ProcessRegistry
from .types import Browser, LaunchAnswers

LOGGER = logging.getLogger("BrowserLauncher")

LOG_LEVELS = {
    "silent": logging.WARNING,
    "error": logging.ERROR,
    "info": logging.INFO,
    "verbose": logging.DEBUG,
}


def parse_args(argv: Sequence[str] | None = None) -> LauncherCLIArgs:
    parser = argparse.ArgumentParser(
        description="Launch a locally installed browser with remote debugging enabled."
    )
    parser.add_argument(
        "--browser",
        choices=[browser.value for browser in Browser],
        help="Browser to launch. Prompts for one of the installed browsers when omitted.",
    )
    parser.add_argument(
        "--url",
        default="",
        help="URL to open once the browser starts.",
    )
    parser.add_argument(
        "--flags",
        default="",
        help="Extra space-separated browser flags, e.g. --flags='--mute-audio --incognito'.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_DEBUG_PORT,
        help="Remote debugging port passed to the browser.",
    )
    parser.add_argument(
        "--user-data-dir",
        type=Path,
        default=None,
        help="Profile directory for the browser session.",
    )
    parser.add_argument(
        "--keep-default-browser-check",
        action="store_true",
        help="Do not pass --no-default-browser-check.",
    )
    parser.add_argument(
        "--ignore-signal",
        action="store_true",
        help="Leave the browser running when Ctrl+C is pressed.",
    )
    parser.add_argument(
        "--full-ask",
        action="store_true",
        help="Also prompt for the URL, flags and Ctrl+C behaviour.",
    )
    parser.add_argument(
        "--log-level",
        choices=list(LOG_LEVELS),
        default=DEFAULT_LOG_LEVEL,
        help="Launcher verbosity: silent only reports warnings, verbose adds debug output.",
    )
    parser.add_argument(
        "--show-browser",
        action="store_true",
        default=show_browser_output(),
        help=f"Forward browser stdout/stderr to the log (or set {SHOW_BROWSER_ENV}=1).",
    )
    parser.add_argument(
        "--browser-log-dir",
        type=Path,
        default=None,
        help="Write browser stdout/stderr to rotating log files in this directory.",
    )
    parser.add_argument(
        "--wait-ready",
        action="store_true",
        help="Wait until the remote debugging endpoint answers before returning.",
    )
    parser.add_argument(
        "--ready-timeout",
        type=float,
        default=DEFAULT_READY_TIMEOUT,
        help="Seconds to wait for the remote debugging endpoint.",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="Print the installed browsers and exit.",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP control API instead of launching interactively.",
    )
    parser.add_argument(
        "--host",
        default=DEFAULT_API_HOST,
        help="Host interface for the HTTP control API.",
    )
    parser.add_argument(
        "--api-port",
        type=int,
        default=DEFAULT_API_PORT,
        help="Port for the HTTP control API.",
    )

    args = parser.parse_args(argv)
    if args.full_ask and args.browser:
        parser.error("--full-ask prompts for the browser and cannot be combined with --browser.")
    try:
        options = LaunchOptions(
            log_level=args.log_level,
            port=args.port,
            chrome_flags=tuple(split_flag_string(args.flags)),
            user_data_dir=(
                args.user_data_dir.expanduser().resolve() if args.user_data_dir else None
            ),
            starting_url=args.url,
            ignore_default_flags=not args.keep_default_browser_check,
            full_ask=args.full_ask,
            ignore_signal=args.ignore_signal,
        )
    except ValidationError as exc:
        parser.error(str(exc))

    return LauncherCLIArgs(
        options=options,
        browser=Browser(args.browser) if args.browser else None,
        list_only=args.list,
        show_browser=args.show_browser,
        browser_log_dir=(
            args.browser_log_dir.expanduser().resolve() if args.browser_log_dir else None
        ),
        wait_ready=args.wait_ready,
        ready_timeout=args.ready_timeout,
        serve=args.serve,
        api_host=args.host,
        api_port=args.api_port,
    )


def _answer_provider(args: LauncherCLIArgs) -> AnswerProvider:
    if args.browser is None:
        return PromptAnswerProvider()
    return StaticAnswerProvider(LaunchAnswers(browser=args.browser))


def _serve(args: LauncherCLIArgs) -> int:
    registry = ProcessRegistry()
    app = create_app(registry)
    config = uvicorn.Config(
        app,
        host=args.api_host,
        port=args.api_port,
        log_level="info",
    )
    server = uvicorn.Server(config)
    try:
        server.run()
    except KeyboardInterrupt:
        LOGGER.info("Shutdown requested by user.")
    finally:
        registry.shutdown()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=LOG_LEVELS.get(args.options.log_level, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    if args.list_only:
        installed = list_installed()
        for browser in installed:
            click.echo(browser.value)
        if not installed:
            LOGGER.error("No supported browsers are installed.")
            return 1
        return 0

    if args.serve:
        return _serve(args)

    controller = LifecycleController(
        _answer_provider(args),
        show_output=args.show_browser,
        log_dir=args.browser_log_dir,
    )
    try:
        process = controller.launch(args.options)
    except NoBrowsersInstalledError as exc:
        LOGGER.error("%s", exc)
        return 1
    except LaunchError as exc:
        LOGGER.error("Failed to launch browser: %s", exc)
        return 1
    except click.exceptions.Abort:
        LOGGER.info("Launch cancelled.")
        return 1

    spec = controller.spec
    if args.wait_ready and spec is not None and spec.port is not None:
        data = asyncio.run(wait_for_debugger(spec.port, args.ready_timeout))
        if data is not None:
            click.echo(data.get("webSocketDebuggerUrl", ""))

    if spec is not None and spec.ignore_signal:
        LOGGER.info("Browser PID=%s left running detached.", process.pid)
        return 0

    LOGGER.info("Browser PID=%s running. Press Ctrl+C to close it.", process.pid)
    controller.wait()
    return 0


if __name__ == "__main__":
    sys.exit(main())
