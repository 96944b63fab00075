"""
Browser launcher package for starting locally installed browsers with remote debugging.

This package exposes typed helpers for browser discovery, flag composition,
detached process supervision and an optional FastAPI control surface that
collectively implement the launcher.
"""

from __future__ import annotations

__all__ = [
    "answers",
    "api",
    "config",
    "controller",
    "facade",
    "flags",
    "health",
    "launcher",
    "main",
    "paths",
    "probe",
    "registry",
    "types",
]
