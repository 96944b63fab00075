from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx

LOGGER = logging.getLogger("BrowserLauncher.Health")


async def wait_for_debugger(
    port: int,
    timeout: float = 30.0,
    *,
    host: str = "127.0.0.1",
    interval: float = 0.5,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any] | None:
    """Poll the browser's `/json/version` endpoint until it answers or timeout elapses."""

    deadline = time.monotonic() + max(timeout, 0.0)
    url = f"http://{host}:{port}/json/version"
    attempt = 0
    async with httpx.AsyncClient(timeout=2.0, transport=transport) as client:
        while time.monotonic() <= deadline:
            attempt += 1
            try:
                response = await client.get(url)
                if response.status_code == 200:
                    data: dict[str, Any] = response.json()
                    LOGGER.info(
                        "Remote debugging on port %s ready after %s attempt(s): %s",
                        port,
                        attempt,
                        data.get("Browser", "unknown browser"),
                    )
                    return data
                LOGGER.debug(
                    "Debugger probe on port %s returned %s.", port, response.status_code
                )
            except (httpx.HTTPError, ValueError) as exc:
                LOGGER.debug("Debugger probe on port %s failed: %s", port, exc)

            if time.monotonic() >= deadline:
                break
            await asyncio.sleep(interval)

    LOGGER.warning(
        "Timed out waiting for remote debugging on port %s after %s attempt(s).",
        port,
        attempt,
    )
    return None
