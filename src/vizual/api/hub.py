from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from vizual.adapters.dap import DapDebugHost
from vizual.adapters.filesystem import LocalDirectoryLister
from vizual.adapters.treesitter import TreeSitterSymbolResolver
from vizual.adapters.workspace import LocalEditor, SourceBreakpoint, WorkspaceState
from vizual.api.schemas import (
    AttachDebuggerMessage,
    ClientMessage,
    CollapseNodeMessage,
    ExpandNodeMessage,
    FocusEditorMessage,
    GraphMeta,
    GraphUpdateMessage,
    NoticeMessage,
    OpenNodeMessage,
    SetActiveModeMessage,
    SetBreakpointsMessage,
    SetColorsMessage,
    SetFiltersMessage,
    SetRootMessage,
    StateUpdateMessage,
)
from vizual.config import Settings
from vizual.core.controller import Collaborators, GraphController
from vizual.core.errors import ConfigurationError, ProtocolError
from vizual.core.events import EventEmitter, Subscription
from vizual.core.ports.debug import DebugHost
from vizual.core.ports.filesystem import DirectoryLister
from vizual.core.ports.host import Editor
from vizual.core.ports.symbols import SymbolResolver
from vizual.models import FilterConfig

logger = logging.getLogger(__name__)


class GraphHub:
    """Owns the controller and its collaborators for one served workspace.

    Also acts as the controller's ``Notifier``: notices are logged and
    broadcast to every connected renderer.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        lister: DirectoryLister | None = None,
        resolver: SymbolResolver | None = None,
        editor: Editor | None = None,
        workspace: WorkspaceState | None = None,
        debug_host: DebugHost | None = None,
    ) -> None:
        self.settings = settings
        self.workspace = workspace or WorkspaceState()
        self.debug_host = debug_host or DapDebugHost(self.workspace)
        self._notices: EventEmitter[NoticeMessage] = EventEmitter()
        self._state_changed: EventEmitter[None] = EventEmitter()
        self._started = False
        self.controller = GraphController(
            settings.root,
            Collaborators(
                lister=lister or LocalDirectoryLister(),
                resolver=resolver or TreeSitterSymbolResolver(),
                notifier=self,
                editor=editor or LocalEditor(),
                breakpoints=self.workspace,
                focus=self.workspace,
                debug_host=self.debug_host,
            ),
            filters=FilterConfig(max_nodes=settings.max_nodes),
            recheck_delay=settings.recheck_delay,
        )

    async def start(self) -> None:
        if self._started:
            return
        await self.controller.initialize()
        self._started = True
        logger.info("Serving graph for %s", self.controller.root_path)

    async def shutdown(self) -> None:
        self.controller.dispose()
        if isinstance(self.debug_host, DapDebugHost):
            await self.debug_host.disconnect()
        self._started = False

    # -- Notifier -------------------------------------------------------------

    def warn(self, message: str) -> None:
        logger.warning(message)
        self._notices.emit(NoticeMessage(level="warning", message=message))

    def error(self, message: str) -> None:
        logger.error(message)
        self._notices.emit(NoticeMessage(level="error", message=message))

    def on_notice(self, listener: Callable[[NoticeMessage], Any]) -> Subscription:
        return self._notices.subscribe(listener)

    def on_state_change(self, listener: Callable[[None], Any]) -> Subscription:
        return self._state_changed.subscribe(listener)

    # -- snapshots ------------------------------------------------------------

    def graph_snapshot(self) -> GraphUpdateMessage:
        store = self.controller.store
        nodes = store.get_nodes()
        edges = store.get_edges()
        return GraphUpdateMessage(
            nodes=nodes,
            edges=edges,
            meta=GraphMeta(
                node_count=len(nodes),
                edge_count=len(edges),
                max_nodes=store.filters.max_nodes,
                over_limit=store.is_over_node_limit(),
            ),
        )

    def state_snapshot(self) -> StateUpdateMessage:
        store = self.controller.store
        return StateUpdateMessage(
            filters=store.filters,
            colors=store.color_rules,
            root=store.root_locator,
            active_mode=store.active_mode,
        )

    # -- inbound messages -----------------------------------------------------

    async def handle(self, message: ClientMessage) -> None:
        controller = self.controller
        match message:
            case ExpandNodeMessage(node_id=node_id):
                await controller.expand_node(node_id)
            case CollapseNodeMessage(node_id=node_id):
                logger.debug("Collapse of %s is display-only", node_id)
            case OpenNodeMessage(node_id=node_id, reveal=reveal):
                await controller.open_node(node_id, reveal=reveal)
            case SetFiltersMessage(filters=filters):
                controller.set_filters(filters)
                self._state_changed.emit(None)
            case SetColorsMessage(colors=colors):
                controller.set_color_rules(colors)
                self._state_changed.emit(None)
            case SetRootMessage(path=path):
                await self.set_root_path(path)
            case SetActiveModeMessage(value=value):
                controller.set_active_mode(value)
                self._state_changed.emit(None)
            case FocusEditorMessage(locator=locator):
                self.workspace.set_focused_locator(locator)
            case SetBreakpointsMessage(breakpoints=breakpoints):
                self.workspace.set_breakpoints(SourceBreakpoint(bp.locator, bp.line) for bp in breakpoints)
            case AttachDebuggerMessage(host=host, port=port, arguments=arguments):
                await self.attach_debugger(host, port, arguments)

    async def set_root_path(self, path: str) -> None:
        try:
            await self.controller.set_root_path(path)
        except ConfigurationError as exc:
            self.error(str(exc))
            return
        self._state_changed.emit(None)

    async def attach_debugger(self, host: str, port: int, arguments: dict[str, Any] | None = None) -> None:
        if not isinstance(self.debug_host, DapDebugHost):
            self.error("Attaching a debugger is not supported by this host.")
            return
        try:
            await self.debug_host.attach(host, port, arguments)
        except (ProtocolError, OSError) as exc:
            self.error(f"Failed to attach debugger at {host}:{port}: {exc}")
