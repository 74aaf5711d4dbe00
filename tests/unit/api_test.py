"""Tests for the HTTP routes, the websocket protocol and the hub."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient
from starlette.testclient import WebSocketTestSession

from vizual.api.app import create_app
from vizual.api.hub import GraphHub
from vizual.api.schemas import (
    AttachDebuggerMessage,
    ExpandNodeMessage,
    NoticeMessage,
    SetBreakpointsMessage,
    client_message_adapter,
)
from vizual.config import Settings
from vizual.core.locators import path_to_locator

from tests.conftest import FakeDebugHost, FakeEditor


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("class App:\n    def run(self):\n        pass\n")
    (tmp_path / "README.md").write_text("# demo\n")
    (tmp_path / "node_modules").mkdir()
    return tmp_path


@pytest.fixture
def hub(project: Path) -> GraphHub:
    return GraphHub(Settings(root=str(project), recheck_delay=0), editor=FakeEditor(), debug_host=FakeDebugHost())


@pytest.fixture
def client(hub: GraphHub) -> Iterator[TestClient]:
    app = create_app(Settings(root=str(hub.controller.root_path)), hub=hub)
    with TestClient(app) as test_client:
        yield test_client


def _receive_until(ws: WebSocketTestSession, predicate: Callable[[dict[str, Any]], bool]) -> dict[str, Any]:
    for _ in range(20):
        message: dict[str, Any] = ws.receive_json()
        if predicate(message):
            return message
    raise AssertionError("expected message not received")


def _is_graph(message: dict[str, Any]) -> bool:
    return bool(message["type"] == "graph/update")


class TestHealthRoutes:
    def test_health_reports_root_and_size(self, client: TestClient, project: Path) -> None:
        assert client.get("/health").json() == {
            "status": "ok",
            "root": path_to_locator(project),
            "nodeCount": 1,
            "debugSession": None,
        }

    def test_health_counts_expanded_nodes(self, client: TestClient, project: Path) -> None:
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "node/expand", "nodeId": path_to_locator(project)})
            _receive_until(ws, lambda m: _is_graph(m) and len(m["nodes"]) == 3)
        assert client.get("/health").json()["nodeCount"] == 3


class TestGraphRoutes:
    def test_graph_contains_root(self, client: TestClient, project: Path) -> None:
        body = client.get("/graph").json()
        assert body["type"] == "graph/update"
        assert [n["id"] for n in body["nodes"]] == [path_to_locator(project)]
        assert body["meta"] == {"nodeCount": 1, "edgeCount": 0, "maxNodes": 1000, "overLimit": False}

    def test_state(self, client: TestClient, project: Path) -> None:
        body = client.get("/state").json()
        assert body["root"] == path_to_locator(project)
        assert body["activeMode"] is False
        assert body["filters"]["maxNodes"] == 1000
        assert body["colors"][0] == {"kind": "folder", "fileExtension": None, "color": "#FFD700"}


class TestWebsocket:
    def test_connect_sends_state_then_graph(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            assert ws.receive_json()["type"] == "state/update"
            graph = ws.receive_json()
            assert graph["type"] == "graph/update"
            assert len(graph["nodes"]) == 1

    def test_expand_root_and_file(self, client: TestClient, project: Path) -> None:
        root = path_to_locator(project)
        app_py = path_to_locator(project / "src" / "app.py")
        with client.websocket_connect("/ws") as ws:
            _receive_until(ws, _is_graph)

            ws.send_json({"type": "node/expand", "nodeId": root})
            graph = _receive_until(ws, lambda m: _is_graph(m) and len(m["nodes"]) == 3)
            labels = sorted(n["label"] for n in graph["nodes"])
            assert labels == sorted(["README.md", project.name, "src"])

            ws.send_json({"type": "node/expand", "nodeId": path_to_locator(project / "src")})
            _receive_until(ws, lambda m: _is_graph(m) and any(n["id"] == app_py for n in m["nodes"]))

            ws.send_json({"type": "node/expand", "nodeId": app_py})
            graph = _receive_until(ws, lambda m: _is_graph(m) and any(n["kind"] == "method" for n in m["nodes"]))
            edges = {(e["from"], e["to"]) for e in graph["edges"]}
            ids = {n["id"] for n in graph["nodes"]}
            assert all(a in ids and b in ids for a, b in edges)

    def test_invalid_message_yields_error_notice(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            _receive_until(ws, _is_graph)
            ws.send_json({"type": "node/explode"})
            notice = _receive_until(ws, lambda m: m["type"] == "notice")
            assert notice["level"] == "error"

    def test_set_filters_publishes_state(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            _receive_until(ws, _is_graph)
            ws.send_json({"type": "filters/set", "filters": {"maxNodes": 5}})
            state = _receive_until(ws, lambda m: m["type"] == "state/update")
            assert state["filters"]["maxNodes"] == 5
            assert state["filters"]["includePatterns"] == ["**/*"]

    def test_limit_warning_reaches_renderer(self, client: TestClient, project: Path) -> None:
        with client.websocket_connect("/ws") as ws:
            _receive_until(ws, _is_graph)
            ws.send_json({"type": "filters/set", "filters": {"maxNodes": 1}})
            ws.send_json({"type": "node/expand", "nodeId": path_to_locator(project)})
            notice = _receive_until(ws, lambda m: m["type"] == "notice")
            assert notice["level"] == "warning"
            assert notice["message"] == "Node limit (1) reached. Increase limit in filters."

    def test_set_root_to_missing_folder_is_reported(self, client: TestClient, project: Path) -> None:
        with client.websocket_connect("/ws") as ws:
            _receive_until(ws, _is_graph)
            ws.send_json({"type": "root/set", "path": str(project / "missing")})
            notice = _receive_until(ws, lambda m: m["type"] == "notice")
            assert notice["level"] == "error"
            assert "does not exist" in notice["message"]

    def test_set_root_replaces_graph(self, client: TestClient, project: Path) -> None:
        with client.websocket_connect("/ws") as ws:
            _receive_until(ws, _is_graph)
            ws.send_json({"type": "root/set", "path": str(project / "src")})
            state = _receive_until(ws, lambda m: m["type"] == "state/update")
            assert state["root"] == path_to_locator(project / "src")
            graph = _receive_until(ws, _is_graph)
            assert [n["label"] for n in graph["nodes"]] == ["src"]


def test_client_messages_parse_camel_case() -> None:
    message = client_message_adapter.validate_python({"type": "node/open", "nodeId": "x", "reveal": True})
    assert message.type == "node/open"
    assert message.node_id == "x"  # type: ignore[union-attr]


class TestHub:
    @pytest.mark.asyncio
    async def test_breakpoints_flag_file_nodes(self, hub: GraphHub, project: Path) -> None:
        await hub.start()
        root = path_to_locator(project)
        readme = path_to_locator(project / "README.md")
        await hub.handle(ExpandNodeMessage(type="node/expand", node_id=root))

        await hub.handle(
            SetBreakpointsMessage.model_validate(
                {"type": "breakpoints/set", "breakpoints": [{"locator": readme, "line": 0}]}
            )
        )

        node = hub.controller.store.get_node(readme)
        assert node is not None and node.has_breakpoint
        await hub.shutdown()

    @pytest.mark.asyncio
    async def test_focus_marks_active_node(self, hub: GraphHub, project: Path) -> None:
        await hub.start()
        root = path_to_locator(project)
        await hub.handle(client_message_adapter.validate_python({"type": "editor/focus", "locator": root}))
        node = hub.controller.store.get_node(root)
        assert node is not None and node.is_active
        await hub.shutdown()

    @pytest.mark.asyncio
    async def test_attach_without_dap_host_is_reported(self, hub: GraphHub) -> None:
        notices: list[NoticeMessage] = []
        hub.on_notice(notices.append)
        await hub.start()

        await hub.handle(AttachDebuggerMessage(type="debug/attach", port=5678))

        assert [n.level for n in notices] == ["error"]
        await hub.shutdown()

    @pytest.mark.asyncio
    async def test_attach_failure_is_reported(self, project: Path) -> None:
        hub = GraphHub(Settings(root=str(project)), editor=FakeEditor())
        notices: list[NoticeMessage] = []
        hub.on_notice(notices.append)
        await hub.start()

        # nothing listens on port 1
        await hub.attach_debugger("127.0.0.1", 1)

        assert len(notices) == 1
        assert notices[0].message.startswith("Failed to attach debugger at 127.0.0.1:1")
        await hub.shutdown()

    @pytest.mark.asyncio
    async def test_open_node_uses_editor(self, project: Path) -> None:
        editor = FakeEditor()
        hub = GraphHub(Settings(root=str(project)), editor=editor, debug_host=FakeDebugHost())
        await hub.start()
        root = path_to_locator(project)

        await hub.handle(client_message_adapter.validate_python({"type": "node/open", "nodeId": root}))

        assert editor.revealed == [root]
        await hub.shutdown()
