"""Interfaces for the debugger, breakpoint and editor-focus collaborators."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, Union

from vizual.core.events import Subscription


@dataclass(frozen=True)
class ThreadInfo:
    id: int
    name: str = ""


@dataclass(frozen=True)
class FrameInfo:
    """One call frame. ``line`` and ``column`` are zero-based."""

    line: int
    column: int = 0
    source_locator: str | None = None
    source_path: str | None = None
    name: str = ""


# -- adapter messages -------------------------------------------------------


@dataclass(frozen=True)
class StoppedEvent:
    thread_id: int | None = None
    reason: str = ""


@dataclass(frozen=True)
class ContinuedEvent:
    thread_id: int | None = None


@dataclass(frozen=True)
class TerminatedEvent:
    pass


@dataclass(frozen=True)
class OtherEvent:
    event: str


AdapterMessage = Union[StoppedEvent, ContinuedEvent, TerminatedEvent, OtherEvent]


def adapter_message_from_dap(message: dict[str, Any]) -> AdapterMessage | None:
    """Convert a raw adapter protocol message into an ``AdapterMessage``.

    Returns ``None`` for anything that is not an event (responses, reverse requests).
    """
    if message.get("type") != "event":
        return None
    event = str(message.get("event", ""))
    body = message.get("body") or {}
    if event == "stopped":
        return StoppedEvent(thread_id=body.get("threadId"), reason=str(body.get("reason", "")))
    if event == "continued":
        return ContinuedEvent(thread_id=body.get("threadId"))
    if event == "terminated":
        return TerminatedEvent()
    return OtherEvent(event=event)


# -- collaborators ----------------------------------------------------------


class DebugSession(Protocol):
    @property
    def id(self) -> str: ...

    async def list_threads(self) -> list[ThreadInfo]: ...

    async def stack_frames(self, thread_id: int, max_depth: int = 20) -> list[FrameInfo]: ...

    def tap(self, listener: Callable[[AdapterMessage], Any]) -> Subscription: ...


class DebugHost(Protocol):
    @property
    def active_session(self) -> DebugSession | None: ...

    def on_did_start_session(self, listener: Callable[[DebugSession], Any]) -> Subscription: ...

    def on_did_terminate_session(self, listener: Callable[[DebugSession], Any]) -> Subscription: ...


class BreakpointSource(Protocol):
    def current_breakpoints(self) -> Sequence[str]: ...

    def on_did_change_breakpoints(self, listener: Callable[[None], Any]) -> Subscription: ...


class EditorFocusSource(Protocol):
    def current_focused_locator(self) -> str | None: ...

    def on_did_change_focus(self, listener: Callable[[str | None], Any]) -> Subscription: ...
