from __future__ import annotations

import logging
import os
import subprocess
import threading
from concurrent.futures import Future
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import IO, Any, Iterable, Sequence

from .config import DEFAULT_TERMINATE_TIMEOUT, show_browser_output
from .paths import resolve_path
from .types import Browser, BrowserProcess

LOGGER = logging.getLogger("BrowserLauncher.Supervisor")
OUTPUT_LOGGER = logging.getLogger("BrowserLauncher.Browser")

_LOG_BYTES = 5 * 1024 * 1024
_LOG_BACKUPS = 5
_PUMP_JOIN_TIMEOUT = 1.0


class LaunchError(RuntimeError):
    """Raised when a browser executable cannot be started."""


def _configure_output_logger(
    name: str, log_dir: Path | None, *, show_output: bool = False
) -> tuple[logging.Logger, Path | None]:
    if log_dir is None:
        return OUTPUT_LOGGER, None

    log_dir.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(f"BrowserLauncher.Browser.{name}")
    logger.setLevel(logging.INFO)
    # Console display still goes through the parent logger.
    logger.propagate = show_output

    log_path = log_dir / f"{name}.log"
    if not any(
        isinstance(handler, RotatingFileHandler)
        and handler.baseFilename == os.path.abspath(log_path)
        for handler in logger.handlers
    ):
        handler = RotatingFileHandler(
            log_path, maxBytes=_LOG_BYTES, backupCount=_LOG_BACKUPS, encoding="utf-8"
        )
        formatter = logging.Formatter(
            "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger, log_path


def _pump_stream(
    stream: IO[bytes], logger: logging.Logger | None, prefix: str
) -> None:
    # Always drain so the browser never blocks on a full pipe.
    for line in iter(stream.readline, b""):
        if logger is not None:
            logger.info("%s%s", prefix, line.decode("utf-8", errors="replace").rstrip())
    stream.close()


def _watch_exit(
    process: subprocess.Popen[bytes],
    exit_code: Future[int],
    pumps: Iterable[threading.Thread],
) -> None:
    code = process.wait()
    for pump in pumps:
        pump.join(timeout=_PUMP_JOIN_TIMEOUT)
    LOGGER.info("browser process exited with code %s", code)
    exit_code.set_result(code)


def _detach_kwargs() -> dict[str, Any]:
    if os.name == "nt":
        return {
            "creationflags": subprocess.DETACHED_PROCESS
            | subprocess.CREATE_NEW_PROCESS_GROUP
        }
    return {"start_new_session": True}


def spawn_browser(
    executable: str | os.PathLike[str],
    args: Sequence[str],
    *,
    browser: Browser | None = None,
    show_output: bool | None = None,
    log_dir: Path | None = None,
) -> BrowserProcess:
    """Start ``executable`` detached from this process and supervise its output."""

    executable = os.fspath(executable)
    if not Path(executable).exists():
        raise LaunchError(f"Browser executable not found: {executable}")

    if show_output is None:
        show_output = show_browser_output()
    name = browser.value if browser is not None else Path(executable).stem
    sink: logging.Logger | None = None
    log_path: Path | None = None
    if show_output or log_dir is not None:
        sink, log_path = _configure_output_logger(
            name, log_dir, show_output=bool(show_output)
        )

    cmd = [executable, *args]
    try:
        process = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            **_detach_kwargs(),
        )
    except OSError as exc:
        raise LaunchError(f"Failed to launch {executable}: {exc}") from exc

    pumps: list[threading.Thread] = []
    for stream, prefix in ((process.stdout, "[stdout] "), (process.stderr, "[stderr] ")):
        if stream is None:
            continue
        pump = threading.Thread(
            target=_pump_stream, args=(stream, sink, prefix), daemon=True
        )
        pump.start()
        pumps.append(pump)

    handle = BrowserProcess(
        executable=executable,
        args=tuple(args),
        process=process,
        browser=browser,
        log_path=log_path,
    )
    watcher = threading.Thread(
        target=_watch_exit,
        args=(process, handle.exit_code, pumps),
        name=f"BrowserExitWatcher-{process.pid}",
        daemon=True,
    )
    watcher.start()

    LOGGER.info("Launched %s PID=%s with args %s", name, process.pid, list(args))
    return handle


def launch_browser(
    browser: Browser | str,
    url: str = "",
    flags: Sequence[str] = (),
    *,
    show_output: bool | None = None,
    log_dir: Path | None = None,
) -> BrowserProcess:
    """Resolve ``browser`` for this platform and spawn it on ``url``."""

    browser = Browser(browser)
    browser_path = resolve_path(browser)
    if not browser_path:
        raise LaunchError(f"Browser path for {browser.value} not found.")

    args = [*flags]
    if url:
        args.append(url)
    return spawn_browser(
        browser_path, args, browser=browser, show_output=show_output, log_dir=log_dir
    )


def kill_browser(handle: BrowserProcess | None) -> None:
    """Send a termination signal to ``handle``. A missing handle is only logged."""

    if handle is None:
        LOGGER.error("No browser process to kill.")
        return

    if handle.process.poll() is not None:
        LOGGER.info(
            "Browser process PID=%s already exited with code %s.",
            handle.pid,
            handle.process.returncode,
        )
        return

    handle.process.terminate()
    LOGGER.info("Browser process killed.")


def terminate_browser(
    handle: BrowserProcess, timeout: float = DEFAULT_TERMINATE_TIMEOUT
) -> int | None:
    """Terminate ``handle`` and wait for it, forcing a kill after ``timeout``."""

    process = handle.process
    if process.poll() is None:
        LOGGER.info("Terminating browser PID=%s...", handle.pid)
        process.terminate()
    try:
        process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        LOGGER.warning(
            "Browser PID=%s did not exit within %.1fs; forcing kill.",
            handle.pid,
            timeout,
        )
        process.kill()
        process.wait()
    return process.returncode
