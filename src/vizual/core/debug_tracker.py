"""Overlay live debugger and editor state onto graph nodes.

The tracker listens to four independent sources (breakpoint changes, editor
focus, debug session lifecycle and the adapter message tap of the current
session) and folds them into per-node flags:

``has_breakpoint``
    the node's file has at least one breakpoint.
``is_active``
    the node's locator is the focused document.
``is_debug_active``
    the node's file appears somewhere in the paused call stack.
``is_debug_symbol_active``
    a paused frame's line lies inside the symbol's range.
``debug_stack_depth``
    shallowest frame index (0 = innermost) at which the file or symbol appears.

Only flags change here; topology is never touched.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vizual.core.errors import ProtocolError
from vizual.core.ports.debug import (
    AdapterMessage,
    BreakpointSource,
    ContinuedEvent,
    DebugHost,
    DebugSession,
    EditorFocusSource,
    FrameInfo,
    OtherEvent,
    StoppedEvent,
    TerminatedEvent,
)
from vizual.core.store import GraphStore

logger = logging.getLogger(__name__)

MAX_STACK_FRAMES = 20
DEFAULT_RECHECK_DELAY = 0.1


@dataclass(frozen=True)
class FrameTarget:
    locator: str
    line: int
    column: int
    depth: int


@dataclass
class StackSnapshot:
    file_depths: dict[str, int]
    targets: list[FrameTarget]


def frame_locator(frame: FrameInfo) -> str | None:
    if frame.source_locator:
        return frame.source_locator
    if frame.source_path:
        return Path(frame.source_path).resolve().as_uri()
    return None


def build_stack_snapshot(stacks: list[list[FrameInfo]]) -> StackSnapshot:
    """Fold per-thread frame lists into minimum depths per file and symbol targets."""
    file_depths: dict[str, int] = {}
    targets: list[FrameTarget] = []
    for frames in stacks:
        for depth, frame in enumerate(frames):
            locator = frame_locator(frame)
            if locator is None:
                continue
            current = file_depths.get(locator)
            if current is None or depth < current:
                file_depths[locator] = depth
            targets.append(FrameTarget(locator=locator, line=frame.line, column=frame.column, depth=depth))
    return StackSnapshot(file_depths=file_depths, targets=targets)


class DebugStateTracker:
    def __init__(
        self,
        store: GraphStore,
        breakpoints: BreakpointSource,
        focus: EditorFocusSource,
        debug_host: DebugHost,
        *,
        recheck_delay: float = DEFAULT_RECHECK_DELAY,
    ) -> None:
        self._store = store
        self._breakpoints = breakpoints
        self._focus = focus
        self._debug_host = debug_host
        self._recheck_delay = recheck_delay
        self._subscriptions = ExitStack()
        self._session_subscriptions = ExitStack()
        self._tasks: set[asyncio.Task[None]] = set()
        self._session_id: str | None = None
        self._generation = 0
        self._started = False

    @property
    def current_session_id(self) -> str | None:
        return self._session_id

    def start(self) -> None:
        """Subscribe to every event source and compute the initial flags."""
        if self._started:
            return
        self._started = True
        self._subscriptions.enter_context(
            self._breakpoints.on_did_change_breakpoints(lambda _=None: self.update_breakpoints())
        )
        self._subscriptions.enter_context(self._focus.on_did_change_focus(lambda _=None: self.update_active_editor()))
        self._subscriptions.enter_context(self._debug_host.on_did_start_session(self.attach_session))
        self._subscriptions.enter_context(self._debug_host.on_did_terminate_session(self._on_session_terminated))

        active = self._debug_host.active_session
        if active is not None:
            self.attach_session(active)

        self.update_breakpoints()
        self.update_active_editor()

    # -- breakpoints / focus --------------------------------------------------

    def update_breakpoints(self) -> None:
        with_breakpoints = set(self._breakpoints.current_breakpoints())
        for node in self._store.get_nodes():
            if node.locator is not None and node.range is None:
                node.has_breakpoint = node.locator in with_breakpoints
        self._store.emit_update()

    def update_active_editor(self) -> None:
        focused = self._focus.current_focused_locator()
        for node in self._store.get_nodes():
            node.is_active = focused is not None and node.locator == focused
        self._store.emit_update()

    # -- session lifecycle ----------------------------------------------------

    def attach_session(self, session: DebugSession) -> None:
        """Install the message tap on ``session`` and schedule one deferred re-check.

        The re-check covers a session that is already paused before the tap is in place.
        """
        self._session_subscriptions.close()
        self._session_subscriptions = ExitStack()
        self._session_id = session.id
        self._generation += 1
        logger.debug("Attached to debug session %s", session.id)

        self._session_subscriptions.enter_context(
            session.tap(lambda message: self.handle_adapter_message(session, message))
        )
        self._spawn(self._deferred_recheck(session, self._generation))

    def _on_session_terminated(self, session: DebugSession) -> None:
        if self._session_id is not None and session.id != self._session_id:
            logger.debug("Ignoring termination of superseded session %s", session.id)
            return
        self._session_subscriptions.close()
        self._session_id = None
        self.clear_debug_state()

    def handle_adapter_message(self, session: DebugSession, message: AdapterMessage) -> None:
        if session.id != self._session_id:
            return
        match message:
            case StoppedEvent():
                self._generation += 1
                self._spawn(self.refresh_call_stack(session, self._generation))
            case ContinuedEvent() | TerminatedEvent():
                self.clear_debug_state()
            case OtherEvent():
                pass

    async def _deferred_recheck(self, session: DebugSession, generation: int) -> None:
        await asyncio.sleep(self._recheck_delay)
        if generation != self._generation:
            return
        await self.refresh_call_stack(session, generation)

    # -- reconciliation -------------------------------------------------------

    def clear_debug_state(self) -> None:
        self._generation += 1
        for node in self._store.get_nodes():
            node.is_debug_active = False
            node.is_debug_symbol_active = False
            node.debug_stack_depth = None
        self._store.emit_update()

    async def refresh_call_stack(self, session: DebugSession, generation: int | None = None) -> None:
        """Query the live call stack of ``session`` and recompute debug flags.

        Results are dropped when the session was replaced, or the program
        resumed or stopped again, while the requests were in flight. Adapter
        errors leave the flags at their last known value.
        """
        if generation is None:
            generation = self._generation
        try:
            stacks = await self._collect_stacks(session)
        except ProtocolError as exc:
            logger.debug("Call stack unavailable for session %s: %s", session.id, exc)
            return

        if session.id != self._session_id or generation != self._generation:
            logger.debug("Discarding stale call stack for session %s", session.id)
            return

        self.apply_stack_snapshot(build_stack_snapshot(stacks))

    async def _collect_stacks(self, session: DebugSession) -> list[list[FrameInfo]]:
        stacks: list[list[FrameInfo]] = []
        for thread in await session.list_threads():
            frames = await session.stack_frames(thread.id, MAX_STACK_FRAMES)
            stacks.append(list(frames[:MAX_STACK_FRAMES]))
        return stacks

    def apply_stack_snapshot(self, snapshot: StackSnapshot) -> None:
        file_depths = snapshot.file_depths
        for node in self._store.get_nodes():
            if node.locator is None:
                continue

            depth = file_depths.get(node.locator)
            node.is_debug_active = depth is not None
            if node.range is None:
                node.debug_stack_depth = depth
                continue

            matches = [
                t.depth
                for t in snapshot.targets
                if t.locator == node.locator and node.range.contains_line(t.line)
            ]
            node.is_debug_symbol_active = bool(matches)
            node.debug_stack_depth = min(matches) if matches else None

        active = sum(1 for n in self._store.get_nodes() if n.is_debug_active or n.is_debug_symbol_active)
        logger.debug("Updated %d nodes with debug flags", active)
        self._store.emit_update()

    # -- tasks / teardown -----------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Debug state refresh failed", exc_info=exc)

    async def wait_idle(self) -> None:
        """Wait for every scheduled refresh to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def dispose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        self._session_subscriptions.close()
        self._subscriptions.close()
        self._session_id = None
        self._started = False
