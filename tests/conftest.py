"""Shared fixtures and in-memory collaborators for tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from vizual.adapters.workspace import WorkspaceState
from vizual.core.controller import Collaborators
from vizual.core.errors import ProtocolError
from vizual.core.events import EventEmitter, Subscription
from vizual.core.ports.debug import AdapterMessage, FrameInfo, ThreadInfo
from vizual.core.ports.filesystem import DirectoryEntry
from vizual.core.ports.symbols import OutlineSymbol, SymbolKind
from vizual.core.store import GraphStore
from vizual.models import SourceRange

_REPO_ROOT = Path(__file__).parent.parent

ROOT = "file:///workspace"


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def loc(*parts: str) -> str:
    """Locator below the fake workspace root."""
    return "/".join([ROOT, *parts]) if parts else ROOT


def rng(start_line: int, end_line: int, start_column: int = 0, end_column: int = 0) -> SourceRange:
    return SourceRange(start_line=start_line, start_column=start_column, end_line=end_line, end_column=end_column)


def sym(
    name: str,
    kind: SymbolKind,
    start_line: int,
    end_line: int,
    children: list[OutlineSymbol] | None = None,
) -> OutlineSymbol:
    return OutlineSymbol(name=name, kind=kind, range=rng(start_line, end_line), children=children or [])


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakeLister:
    """Directory listing from a ``{locator: [(name, is_directory), ...]}`` mapping."""

    def __init__(self, tree: dict[str, list[tuple[str, bool]]] | None = None) -> None:
        self.tree = tree or {}
        self.failing: set[str] = set()
        self.gate: asyncio.Event | None = None
        self.calls: list[str] = []

    async def list(self, folder_locator: str) -> list[DirectoryEntry]:
        self.calls.append(folder_locator)
        if self.gate is not None:
            await self.gate.wait()
        if folder_locator in self.failing:
            raise PermissionError(f"Permission denied: {folder_locator}")
        return [DirectoryEntry(name, is_dir) for name, is_dir in self.tree.get(folder_locator, [])]


class FakeResolver:
    def __init__(self, outlines: dict[str, list[OutlineSymbol] | Exception] | None = None) -> None:
        self.outlines = outlines or {}
        self.calls: list[str] = []

    async def outline(self, file_locator: str) -> list[OutlineSymbol]:
        self.calls.append(file_locator)
        result = self.outlines.get(file_locator, [])
        if isinstance(result, Exception):
            raise result
        return result


class FakeNotifier:
    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.errors: list[str] = []

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


class FakeEditor:
    def __init__(self, failure: Exception | None = None) -> None:
        self.failure = failure
        self.opened: list[tuple[str, SourceRange | None, bool]] = []
        self.revealed: list[str] = []

    async def open(self, locator: str, source_range: SourceRange | None = None, reveal: bool = False) -> None:
        if self.failure is not None:
            raise self.failure
        self.opened.append((locator, source_range, reveal))

    async def reveal_folder(self, locator: str) -> None:
        if self.failure is not None:
            raise self.failure
        self.revealed.append(locator)


class FakeDebugSession:
    """Paused program with a fixed set of threads and frames."""

    def __init__(self, session_id: str = "session-1", stacks: dict[int, list[FrameInfo]] | None = None) -> None:
        self._id = session_id
        self.stacks = stacks or {}
        self.failure: ProtocolError | None = None
        self.gate: asyncio.Event | None = None
        self._messages: EventEmitter[AdapterMessage] = EventEmitter()
        self.stack_requests = 0

    @property
    def id(self) -> str:
        return self._id

    @property
    def tap_count(self) -> int:
        return len(self._messages)

    async def list_threads(self) -> list[ThreadInfo]:
        if self.failure is not None:
            raise self.failure
        return [ThreadInfo(id=thread_id, name=f"thread-{thread_id}") for thread_id in self.stacks]

    async def stack_frames(self, thread_id: int, max_depth: int = 20) -> list[FrameInfo]:
        self.stack_requests += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.failure is not None:
            raise self.failure
        return self.stacks.get(thread_id, [])[:max_depth]

    def tap(self, listener: Callable[[AdapterMessage], Any]) -> Subscription:
        return self._messages.subscribe(listener)

    def emit(self, message: AdapterMessage) -> None:
        self._messages.emit(message)


class FakeDebugHost:
    def __init__(self) -> None:
        self.active_session: FakeDebugSession | None = None
        self._started: EventEmitter[FakeDebugSession] = EventEmitter()
        self._terminated: EventEmitter[FakeDebugSession] = EventEmitter()

    def on_did_start_session(self, listener: Callable[[FakeDebugSession], Any]) -> Subscription:
        return self._started.subscribe(listener)

    def on_did_terminate_session(self, listener: Callable[[FakeDebugSession], Any]) -> Subscription:
        return self._terminated.subscribe(listener)

    def start(self, session: FakeDebugSession) -> None:
        self.active_session = session
        self._started.emit(session)

    def terminate(self, session: FakeDebugSession) -> None:
        if self.active_session is session:
            self.active_session = None
        self._terminated.emit(session)


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> GraphStore:
    return GraphStore(ROOT)


@pytest.fixture
def lister() -> FakeLister:
    return FakeLister()


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def editor() -> FakeEditor:
    return FakeEditor()


@pytest.fixture
def workspace() -> WorkspaceState:
    return WorkspaceState()


@pytest.fixture
def debug_host() -> FakeDebugHost:
    return FakeDebugHost()


@pytest.fixture
def collaborators(
    lister: FakeLister,
    resolver: FakeResolver,
    notifier: FakeNotifier,
    editor: FakeEditor,
    workspace: WorkspaceState,
    debug_host: FakeDebugHost,
) -> Collaborators:
    return Collaborators(
        lister=lister,
        resolver=resolver,
        notifier=notifier,
        editor=editor,
        breakpoints=workspace,
        focus=workspace,
        debug_host=debug_host,
    )
