"""Build-tool lifecycle contract used by release plugins.

A host build tool exposes two events to plugins:

``after-emit``
    Fired once per successful compilation with ``(compilation, callback)``.
    The handler must call ``callback()`` exactly once.
``done``
    Fired once after the whole build with a ``Stats`` snapshot.

``HookCompiler`` is a minimal host that drives those events over a
``Compilation`` built from an output directory.
"""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Protocol

from .errors import ConfigError
from .logger import get_logger

LOGGER = get_logger()

AFTER_EMIT = "after-emit"
DONE = "done"
EVENTS = (AFTER_EMIT, DONE)


@dataclass(slots=True)
class Asset:
    """Emitted build output; ``exists_at`` is where it was written."""

    exists_at: str | Path


@dataclass(slots=True)
class Compilation:
    hash: str
    assets: dict[str, Asset] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Stats:
    compilation: Compilation


class Compiler(Protocol):
    """Host side of the plugin contract."""

    def plugin(self, event: str, handler: Callable[..., None]) -> None:
        """Register ``handler`` for the named lifecycle event."""


class HookCompiler:
    """Minimal host that runs registered lifecycle handlers in order."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Callable[..., None]]] = {event: [] for event in EVENTS}

    def plugin(self, event: str, handler: Callable[..., None]) -> None:
        if event not in self._handlers:
            raise ConfigError(f"Unknown lifecycle event: {event}")
        self._handlers[event].append(handler)

    def handlers(self, event: str) -> tuple[Callable[..., None], ...]:
        return tuple(self._handlers.get(event, ()))

    def run_after_emit(self, compilation: Compilation) -> bool:
        """Run every ``after-emit`` handler; return True when each called back exactly once."""

        all_completed = True
        for handler in self._handlers[AFTER_EMIT]:
            calls = {"count": 0}

            def callback() -> None:
                calls["count"] += 1

            handler(compilation, callback)
            if calls["count"] != 1:
                LOGGER.warning(
                    "lifecycle.after_emit handler=%s callback_calls=%d",
                    getattr(handler, "__qualname__", repr(handler)),
                    calls["count"],
                )
                all_completed = False
        return all_completed

    def run_done(self, stats: Stats) -> None:
        for handler in self._handlers[DONE]:
            handler(stats)

    def run(self, compilation: Compilation) -> Stats:
        """Fire ``after-emit`` then ``done`` for a single compilation."""

        self.run_after_emit(compilation)
        stats = Stats(compilation=compilation)
        self.run_done(stats)
        return stats


def compilation_from_directory(path: str | Path, *, build_hash: str | None = None) -> Compilation:
    """Build a ``Compilation`` from files already written to ``path``.

    Asset names are POSIX paths relative to ``path`` in sorted walk order. The
    hash defaults to a SHA-1 over every asset name and its content.
    """

    root = Path(path)
    if not root.is_dir():
        raise ConfigError(f"Build output directory not found: {root}")

    assets: dict[str, Asset] = {}
    digest = hashlib.sha1()
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for filename in sorted(filenames):
            file_path = Path(dirpath) / filename
            name = file_path.relative_to(root).as_posix()
            assets[name] = Asset(exists_at=file_path)
            digest.update(name.encode("utf-8"))
            digest.update(file_path.read_bytes())

    return Compilation(hash=build_hash or digest.hexdigest()[:20], assets=assets)


__all__ = [
    "AFTER_EMIT",
    "DONE",
    "Asset",
    "Compilation",
    "Compiler",
    "HookCompiler",
    "Stats",
    "compilation_from_directory",
]
