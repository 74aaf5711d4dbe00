"""Unit tests for the in-process workspace state and editor adapters."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from vizual.adapters.filesystem import LocalDirectoryLister
from vizual.adapters.workspace import LocalEditor, LoggingNotifier, SourceBreakpoint, WorkspaceState
from vizual.core.locators import path_to_locator

from tests.conftest import loc


def test_breakpoint_locators_are_deduplicated() -> None:
    state = WorkspaceState()
    state.set_breakpoints(
        [SourceBreakpoint(loc("a.py"), 1), SourceBreakpoint(loc("a.py"), 7), SourceBreakpoint(loc("b.py"), 2)]
    )
    assert state.current_breakpoints() == [loc("a.py"), loc("b.py")]
    assert state.breakpoints_by_locator() == {loc("a.py"): [1, 7], loc("b.py"): [2]}


def test_breakpoint_change_notifies() -> None:
    state = WorkspaceState()
    calls: list[None] = []
    state.on_did_change_breakpoints(calls.append)
    state.set_breakpoints([])
    assert calls == [None]


def test_focus_notifies_only_on_change() -> None:
    state = WorkspaceState()
    seen: list[str | None] = []
    state.on_did_change_focus(seen.append)
    state.set_focused_locator(loc("a.py"))
    state.set_focused_locator(loc("a.py"))
    state.set_focused_locator(None)
    assert seen == [loc("a.py"), None]
    assert state.current_focused_locator() is None


def test_logging_notifier_logs(caplog: pytest.LogCaptureFixture) -> None:
    notifier = LoggingNotifier()
    with caplog.at_level("WARNING"):
        notifier.warn("careful")
        notifier.error("broken")
    assert [r.levelname for r in caplog.records] == ["WARNING", "ERROR"]


@pytest.mark.asyncio
async def test_local_editor_launches_path(tmp_path: Path) -> None:
    path = tmp_path / "a.py"
    path.write_text("x = 1\n")
    with patch("vizual.adapters.workspace.typer.launch", return_value=0) as launch:
        await LocalEditor().open(path_to_locator(path), reveal=True)
        await LocalEditor().reveal_folder(path_to_locator(tmp_path))
    assert launch.call_args_list[0].args == (str(path.resolve()),)
    assert launch.call_args_list[0].kwargs == {"locate": True}
    assert launch.call_args_list[1].kwargs == {"locate": True}


@pytest.mark.asyncio
async def test_directory_lister_sorts_entries(tmp_path: Path) -> None:
    (tmp_path / "b.py").write_text("")
    (tmp_path / "a").mkdir()
    (tmp_path / ".env").write_text("")

    entries = await LocalDirectoryLister().list(path_to_locator(tmp_path))

    assert [(e.name, e.is_directory) for e in entries] == [(".env", False), ("a", True), ("b.py", False)]


@pytest.mark.asyncio
async def test_directory_lister_raises_os_error(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        await LocalDirectoryLister().list(path_to_locator(tmp_path / "missing"))
