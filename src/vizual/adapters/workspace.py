"""In-process stand-ins for the host editor: breakpoints, focus, notices, opening files."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

import typer

from vizual.core.events import EventEmitter, Subscription
from vizual.core.locators import locator_to_path
from vizual.models import SourceRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceBreakpoint:
    locator: str
    line: int


class WorkspaceState:
    """Breakpoints and editor focus, pushed in by the boundary.

    Implements both ``BreakpointSource`` and ``EditorFocusSource``.
    """

    def __init__(self) -> None:
        self._breakpoints: list[SourceBreakpoint] = []
        self._focused: str | None = None
        self._breakpoints_changed: EventEmitter[None] = EventEmitter()
        self._focus_changed: EventEmitter[str | None] = EventEmitter()

    @property
    def breakpoints(self) -> list[SourceBreakpoint]:
        return list(self._breakpoints)

    def breakpoints_by_locator(self) -> dict[str, list[int]]:
        lines: dict[str, list[int]] = {}
        for bp in self._breakpoints:
            lines.setdefault(bp.locator, []).append(bp.line)
        return lines

    def set_breakpoints(self, breakpoints: Iterable[SourceBreakpoint]) -> None:
        self._breakpoints = list(dict.fromkeys(breakpoints))
        self._breakpoints_changed.emit(None)

    def current_breakpoints(self) -> list[str]:
        return list(dict.fromkeys(bp.locator for bp in self._breakpoints))

    def on_did_change_breakpoints(self, listener: Callable[[None], Any]) -> Subscription:
        return self._breakpoints_changed.subscribe(listener)

    def set_focused_locator(self, locator: str | None) -> None:
        if locator == self._focused:
            return
        self._focused = locator
        self._focus_changed.emit(locator)

    def current_focused_locator(self) -> str | None:
        return self._focused

    def on_did_change_focus(self, listener: Callable[[str | None], Any]) -> Subscription:
        return self._focus_changed.subscribe(listener)


class LoggingNotifier:
    def warn(self, message: str) -> None:
        logger.warning(message)

    def error(self, message: str) -> None:
        logger.error(message)


class LocalEditor:
    """Opens files and reveals folders with the platform's default application."""

    async def open(self, locator: str, source_range: SourceRange | None = None, reveal: bool = False) -> None:
        path = locator_to_path(locator)
        await asyncio.to_thread(typer.launch, str(path), locate=reveal)

    async def reveal_folder(self, locator: str) -> None:
        path = locator_to_path(locator)
        await asyncio.to_thread(typer.launch, str(path), locate=True)
