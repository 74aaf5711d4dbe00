"""Debug Adapter Protocol client over TCP.

Implements the ``DebugSession`` and ``DebugHost`` protocols against any adapter
that listens on a socket (for example ``python -m debugpy --listen 5678``).
Messages use the ``Content-Length`` framing of the protocol. Lines and columns
reported by the adapter are one-based; they are converted to zero-based
``FrameInfo`` positions here.
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import json
import logging
import uuid
from collections.abc import Callable
from typing import Any

from vizual.adapters.workspace import WorkspaceState
from vizual.core.errors import ProtocolError
from vizual.core.events import EventEmitter, Subscription
from vizual.core.locators import locator_to_path
from vizual.core.ports.debug import (
    AdapterMessage,
    FrameInfo,
    TerminatedEvent,
    ThreadInfo,
    adapter_message_from_dap,
)

logger = logging.getLogger(__name__)

JsonDict = dict[str, Any]

_HEADER_SEPARATOR = b"\r\n\r\n"


def encode_message(message: JsonDict) -> bytes:
    encoded = json.dumps(message).encode("utf-8")
    header = f"Content-Length: {len(encoded)}\r\n\r\n".encode("ascii")
    return header + encoded


async def read_message(reader: asyncio.StreamReader) -> JsonDict | None:
    """Read a single framed message. Returns None on EOF."""
    try:
        header = await reader.readuntil(_HEADER_SEPARATOR)
    except asyncio.IncompleteReadError:
        return None

    content_length: int | None = None
    for line in header.decode("ascii", errors="replace").split("\r\n"):
        if line.lower().startswith("content-length:"):
            content_length = int(line.split(":", 1)[1].strip())
    if content_length is None:
        raise ProtocolError("read", "missing Content-Length header")

    try:
        body = await reader.readexactly(content_length)
    except asyncio.IncompleteReadError:
        return None
    message: JsonDict = json.loads(body.decode("utf-8"))
    return message


def _frame_from_dap(frame: JsonDict) -> FrameInfo:
    source = frame.get("source") or {}
    return FrameInfo(
        line=max(int(frame.get("line", 1)) - 1, 0),
        column=max(int(frame.get("column", 1)) - 1, 0),
        source_path=source.get("path"),
        name=str(frame.get("name", "")),
    )


class DapSession:
    """One connection to a debug adapter."""

    def __init__(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter, session_id: str | None = None
    ) -> None:
        self._id = session_id or uuid.uuid4().hex
        self._reader = reader
        self._writer = writer
        self._seq = itertools.count(1)
        self._pending: dict[int, asyncio.Future[JsonDict]] = {}
        self._messages: EventEmitter[AdapterMessage] = EventEmitter()
        self._closed: EventEmitter[DapSession] = EventEmitter()
        self._read_task: asyncio.Task[None] | None = None
        self._is_closed = False

    @property
    def id(self) -> str:
        return self._id

    @property
    def is_closed(self) -> bool:
        return self._is_closed

    @classmethod
    async def connect(cls, host: str, port: int) -> DapSession:
        reader, writer = await asyncio.open_connection(host, port)
        session = cls(reader, writer)
        session.start()
        logger.info("Connected to debug adapter at %s:%d (session %s)", host, port, session.id)
        return session

    def start(self) -> None:
        if self._read_task is None:
            self._read_task = asyncio.get_running_loop().create_task(self._read_loop())

    def tap(self, listener: Callable[[AdapterMessage], Any]) -> Subscription:
        return self._messages.subscribe(listener)

    def on_close(self, listener: Callable[[DapSession], Any]) -> Subscription:
        return self._closed.subscribe(listener)

    def send_request(self, command: str, arguments: JsonDict | None = None) -> asyncio.Future[JsonDict]:
        """Write a request and return a future for its response body."""
        future: asyncio.Future[JsonDict] = asyncio.get_running_loop().create_future()
        if self._is_closed:
            future.set_exception(ProtocolError(command, "connection closed"))
            return future
        seq = next(self._seq)
        message: JsonDict = {"seq": seq, "type": "request", "command": command}
        if arguments is not None:
            message["arguments"] = arguments
        self._pending[seq] = future
        self._writer.write(encode_message(message))
        return future

    async def request(self, command: str, arguments: JsonDict | None = None) -> JsonDict:
        future = self.send_request(command, arguments)
        if not future.done():
            try:
                await self._writer.drain()
            except ConnectionError as exc:
                future.cancel()
                raise ProtocolError(command, str(exc)) from exc
        return await future

    async def list_threads(self) -> list[ThreadInfo]:
        body = await self.request("threads")
        return [ThreadInfo(id=int(t["id"]), name=str(t.get("name", ""))) for t in body.get("threads", [])]

    async def stack_frames(self, thread_id: int, max_depth: int = 20) -> list[FrameInfo]:
        body = await self.request("stackTrace", {"threadId": thread_id, "startFrame": 0, "levels": max_depth})
        return [_frame_from_dap(frame) for frame in body.get("stackFrames", [])[:max_depth]]

    async def close(self) -> None:
        if self._read_task is not None:
            self._read_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._read_task
            self._read_task = None
        self._shutdown()

    async def _read_loop(self) -> None:
        try:
            while True:
                message = await read_message(self._reader)
                if message is None:
                    logger.info("Debug adapter closed the connection (session %s)", self._id)
                    break
                self._dispatch(message)
        except (ProtocolError, ConnectionError, json.JSONDecodeError) as exc:
            logger.warning("Debug adapter stream failed (session %s): %s", self._id, exc)
        finally:
            self._shutdown()

    def _dispatch(self, message: JsonDict) -> None:
        kind = message.get("type")
        if kind == "response":
            future = self._pending.pop(int(message.get("request_seq", -1)), None)
            if future is None or future.done():
                return
            if message.get("success", False):
                future.set_result(message.get("body") or {})
            else:
                command = str(message.get("command", "?"))
                future.set_exception(ProtocolError(command, str(message.get("message", "request failed"))))
        elif kind == "event":
            adapter_message = adapter_message_from_dap(message)
            if adapter_message is not None:
                self._messages.emit(adapter_message)
        elif kind == "request":
            # Reverse requests (runInTerminal, startDebugging) are not supported.
            self._writer.write(
                encode_message(
                    {
                        "seq": next(self._seq),
                        "type": "response",
                        "request_seq": message.get("seq"),
                        "command": message.get("command"),
                        "success": False,
                        "message": "not supported",
                    }
                )
            )

    def _shutdown(self) -> None:
        if self._is_closed:
            return
        self._is_closed = True
        for seq, future in self._pending.items():
            if not future.done():
                future.set_exception(ProtocolError(f"request {seq}", "connection closed"))
        self._pending.clear()
        self._writer.close()
        self._closed.emit(self)


class DapDebugHost:
    """Tracks the current adapter session and announces its start and end."""

    def __init__(self, workspace: WorkspaceState | None = None, client_id: str = "vizual") -> None:
        self._workspace = workspace
        self._client_id = client_id
        self._active: DapSession | None = None
        self._started: EventEmitter[DapSession] = EventEmitter()
        self._terminated: EventEmitter[DapSession] = EventEmitter()
        self._live: set[str] = set()

    @property
    def active_session(self) -> DapSession | None:
        return self._active

    def on_did_start_session(self, listener: Callable[[DapSession], Any]) -> Subscription:
        return self._started.subscribe(listener)

    def on_did_terminate_session(self, listener: Callable[[DapSession], Any]) -> Subscription:
        return self._terminated.subscribe(listener)

    async def attach(self, host: str, port: int, arguments: JsonDict | None = None) -> DapSession:
        """Connect to an adapter, run the attach handshake and make it the active session."""
        if self._active is not None:
            await self.disconnect()

        session = await DapSession.connect(host, port)
        session.on_close(self._finish)
        session.tap(lambda message: self._on_message(session, message))
        attached: asyncio.Future[JsonDict] | None = None
        try:
            await session.request(
                "initialize",
                {
                    "clientID": self._client_id,
                    "adapterID": "vizual",
                    "linesStartAt1": True,
                    "columnsStartAt1": True,
                    "pathFormat": "path",
                },
            )
            self._active = session
            self._live.add(session.id)
            self._started.emit(session)

            attached = session.send_request("attach", arguments or {})
            await self._send_breakpoints(session)
            await session.request("configurationDone")
            await attached
        except ProtocolError:
            await session.close()
            if attached is not None and attached.done() and not attached.cancelled():
                attached.exception()
            raise
        return session

    async def disconnect(self) -> None:
        session = self._active
        if session is None:
            return
        with contextlib.suppress(ProtocolError, asyncio.TimeoutError):
            await asyncio.wait_for(session.request("disconnect", {"terminateDebuggee": False}), timeout=2.0)
        await session.close()

    async def _send_breakpoints(self, session: DapSession) -> None:
        if self._workspace is None:
            return
        for locator, lines in self._workspace.breakpoints_by_locator().items():
            arguments = {
                "source": {"path": str(locator_to_path(locator))},
                "breakpoints": [{"line": line + 1} for line in sorted(set(lines))],
            }
            try:
                await session.request("setBreakpoints", arguments)
            except ProtocolError as exc:
                logger.warning("Adapter rejected breakpoints for %s: %s", locator, exc)

    def _on_message(self, session: DapSession, message: AdapterMessage) -> None:
        if isinstance(message, TerminatedEvent):
            self._finish(session)

    def _finish(self, session: DapSession) -> None:
        if session.id not in self._live:
            return
        self._live.discard(session.id)
        if self._active is session:
            self._active = None
        logger.info("Debug session %s terminated", session.id)
        self._terminated.emit(session)
