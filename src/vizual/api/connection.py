"""One renderer attached over a websocket.

Store notifications only mark the graph dirty; the send loop publishes at
most one ``graph/update`` per wakeup, so a burst of mutations during an
expansion reaches the renderer as a single snapshot.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from contextlib import ExitStack

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from vizual.api.hub import GraphHub
from vizual.api.schemas import ClientMessage, NoticeMessage, WireMessage, client_message_adapter

logger = logging.getLogger(__name__)


class GraphConnection:
    def __init__(self, websocket: WebSocket, hub: GraphHub) -> None:
        self._websocket = websocket
        self._hub = hub
        self._outbox: deque[WireMessage] = deque()
        self._graph_dirty = False
        self._wakeup = asyncio.Event()
        self._tasks: set[asyncio.Task[None]] = set()

    async def run(self) -> None:
        await self._websocket.accept()
        with ExitStack() as stack:
            stack.enter_context(self._hub.controller.on_update(self._mark_graph_dirty))
            stack.enter_context(self._hub.on_notice(self._enqueue))
            stack.enter_context(self._hub.on_state_change(lambda _: self._enqueue(self._hub.state_snapshot())))

            self._enqueue(self._hub.state_snapshot())
            self._mark_graph_dirty()
            sender = asyncio.create_task(self._send_loop())
            try:
                await self._receive_loop()
            except WebSocketDisconnect:
                logger.debug("Renderer disconnected")
            finally:
                sender.cancel()
                for task in list(self._tasks):
                    task.cancel()
                await asyncio.gather(sender, *self._tasks, return_exceptions=True)

    def _enqueue(self, message: WireMessage) -> None:
        self._outbox.append(message)
        self._wakeup.set()

    def _mark_graph_dirty(self) -> None:
        self._graph_dirty = True
        self._wakeup.set()

    async def _send_loop(self) -> None:
        try:
            while True:
                await self._wakeup.wait()
                self._wakeup.clear()
                while self._outbox:
                    await self._websocket.send_json(self._outbox.popleft().to_wire())
                if self._graph_dirty:
                    self._graph_dirty = False
                    await self._websocket.send_json(self._hub.graph_snapshot().to_wire())
        except WebSocketDisconnect:
            logger.debug("Renderer went away while sending")

    async def _receive_loop(self) -> None:
        while True:
            text = await self._websocket.receive_text()
            try:
                message = client_message_adapter.validate_json(text)
            except ValidationError as exc:
                logger.warning("Rejected renderer message: %s", exc.errors(include_url=False))
                self._enqueue(NoticeMessage(level="error", message=f"Invalid message: {exc.error_count()} error(s)"))
                continue
            self._spawn(message)

    def _spawn(self, message: ClientMessage) -> None:
        task = asyncio.create_task(self._hub.handle(message))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Renderer message failed", exc_info=exc)
