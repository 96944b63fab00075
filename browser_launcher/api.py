from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from .answers import StaticAnswerProvider
from .config import LaunchOptions
from .controller import LifecycleController, ListInstalledFunc
from .health import wait_for_debugger
from .launcher import LaunchError, kill_browser, launch_browser
from .probe import list_installed
from .registry import ProcessRegistry, TrackedBrowser
from .types import Browser, BrowserProcess, LaunchAnswers

LOGGER = logging.getLogger("BrowserLauncher.API")

DebuggerProbeFunc = Callable[..., Awaitable[Optional[Dict[str, Any]]]]


class LaunchRequest(LaunchOptions):
    """Body of ``POST /launch``: the answers plus the launch options."""

    browser: Browser
    url: Optional[str] = None
    flags: Optional[str] = None

    def answers(self) -> LaunchAnswers:
        return LaunchAnswers(
            browser=self.browser,
            url=self.url,
            flags=self.flags,
            ignore_signal=self.ignore_signal,
        )

    def options(self) -> LaunchOptions:
        return LaunchOptions.model_validate(
            self.model_dump(exclude={"browser", "url", "flags"})
        )


def _describe(entry: TrackedBrowser) -> Dict[str, Any]:
    process = entry.process
    return {
        "pid": process.pid,
        "browser": entry.spec.browser.value,
        "args": list(process.args),
        "port": entry.spec.port,
        "running": process.running,
        "exit_code": process.poll(),
        "keep_running": entry.keep_running,
    }


def create_app(
    registry: ProcessRegistry,
    *,
    list_installed_fn: ListInstalledFunc = list_installed,
    launch_fn: Callable[..., BrowserProcess] = launch_browser,
    kill_fn: Callable[[BrowserProcess | None], None] = kill_browser,
    debugger_probe: DebuggerProbeFunc = wait_for_debugger,
) -> FastAPI:
    app = FastAPI(title="Browser Launcher", version="0.1.0")

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await asyncio.to_thread(registry.shutdown)

    def _tracked(pid: int) -> TrackedBrowser:
        entry = registry.get(pid)
        if entry is None:
            raise HTTPException(status_code=404, detail=f"No browser with PID {pid}.")
        return entry

    @app.get("/live")
    async def live() -> Dict[str, str]:
        return {"status": "alive"}

    @app.get("/browsers")
    async def browsers() -> Dict[str, List[str]]:
        return {"installed": [browser.value for browser in list_installed_fn()]}

    @app.post("/launch", status_code=201)
    async def launch(request: LaunchRequest) -> Dict[str, Any]:
        installed = list(list_installed_fn())
        if request.browser not in installed:
            raise HTTPException(
                status_code=404,
                detail=f"Browser '{request.browser.value}' is not installed.",
            )

        controller = LifecycleController(
            StaticAnswerProvider(request.answers()),
            handle_signals=False,
            list_installed_fn=lambda: installed,
            launch_fn=launch_fn,
            kill_fn=kill_fn,
        )
        try:
            process = controller.launch(request.options())
        except LaunchError as exc:
            LOGGER.error("Launch of '%s' failed: %s", request.browser.value, exc)
            raise HTTPException(status_code=500, detail=str(exc)) from exc

        entry = registry.add(process, controller.spec)
        LOGGER.info("Launched '%s' as PID=%s.", request.browser.value, process.pid)
        return _describe(entry)

    @app.get("/processes")
    async def processes() -> Dict[str, List[Dict[str, Any]]]:
        return {"processes": [_describe(entry) for entry in registry.entries()]}

    @app.get("/processes/{pid}/debugger")
    async def debugger(pid: int, timeout: float = 5.0) -> JSONResponse:
        entry = _tracked(pid)
        if entry.spec.port is None:
            raise HTTPException(
                status_code=409, detail="Browser was launched without a debugging port."
            )
        data = await debugger_probe(entry.spec.port, timeout)
        if data is None:
            return JSONResponse(
                status_code=504,
                content={"status": "unreachable", "port": entry.spec.port},
            )
        return JSONResponse(
            status_code=200,
            content={"status": "ready", "port": entry.spec.port, "version": data},
        )

    @app.delete("/processes/{pid}")
    async def kill(pid: int) -> Dict[str, Any]:
        entry = _tracked(pid)
        kill_fn(entry.process)
        registry.remove(pid)
        return {"pid": pid, "killed": True}

    return app
