from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vizual.core.debug_tracker import DEFAULT_RECHECK_DELAY, DebugStateTracker
from vizual.core.directory import DirectoryExpander
from vizual.core.errors import ConfigurationError
from vizual.core.events import Subscription
from vizual.core.locators import locator_to_path, path_to_locator
from vizual.core.ports.debug import BreakpointSource, DebugHost, EditorFocusSource
from vizual.core.ports.filesystem import DirectoryLister
from vizual.core.ports.host import Editor, Notifier
from vizual.core.ports.symbols import SymbolResolver
from vizual.core.store import GraphStore
from vizual.core.symbols import SymbolExpander
from vizual.models import ColorRule, FilterConfig, GraphNode, NodeKind

logger = logging.getLogger(__name__)


@dataclass
class Collaborators:
    lister: DirectoryLister
    resolver: SymbolResolver
    notifier: Notifier
    editor: Editor
    breakpoints: BreakpointSource
    focus: EditorFocusSource
    debug_host: DebugHost


def resolve_root(path: str | Path) -> str:
    """Return the locator for ``path``, raising ``ConfigurationError`` if it is not a folder."""
    root = Path(path).expanduser()
    if not root.is_dir():
        raise ConfigurationError(f"Root folder does not exist: {root}")
    return path_to_locator(root)


class GraphController:
    """Routes boundary requests to the store, the expanders and the debug tracker."""

    def __init__(
        self,
        root_path: str | Path,
        collaborators: Collaborators,
        *,
        filters: FilterConfig | None = None,
        recheck_delay: float = DEFAULT_RECHECK_DELAY,
    ) -> None:
        self._collaborators = collaborators
        self.store = GraphStore(resolve_root(root_path), filters=filters)
        self.directories = DirectoryExpander(self.store, collaborators.lister, collaborators.notifier)
        self.symbols = SymbolExpander(self.store, collaborators.resolver, collaborators.notifier)
        self.debug_tracker = DebugStateTracker(
            self.store,
            collaborators.breakpoints,
            collaborators.focus,
            collaborators.debug_host,
            recheck_delay=recheck_delay,
        )

    @property
    def root_path(self) -> Path:
        return locator_to_path(self.store.root_locator)

    async def initialize(self) -> GraphNode:
        """Create the root node and start tracking debug state. Needs a running event loop."""
        root = self.directories.initialize_root()
        self.debug_tracker.start()
        return root

    async def expand_node(self, node_id: str) -> None:
        node = self.store.get_node(node_id)
        if node is None:
            return
        if node.kind is NodeKind.FOLDER:
            await self.directories.expand_folder(node_id)
        elif node.kind is NodeKind.FILE:
            await self.symbols.expand_file(node_id)

    async def open_node(self, node_id: str, reveal: bool = False) -> None:
        node = self.store.get_node(node_id)
        if node is None or node.locator is None:
            return
        editor = self._collaborators.editor
        try:
            if node.kind is NodeKind.FOLDER:
                await editor.reveal_folder(node.locator)
            else:
                await editor.open(node.locator, node.range, reveal=reveal)
        except OSError as exc:
            logger.warning("Error opening %s: %s", node.locator, exc)
            self._collaborators.notifier.error(f"Failed to open: {node.label}")

    async def set_root_path(self, path: str | Path) -> GraphNode:
        locator = resolve_root(path)
        self.store.set_root_locator(locator)
        return self.directories.initialize_root()

    def set_filters(self, filters: FilterConfig | Mapping[str, Any]) -> None:
        self.store.set_filters(filters)

    def set_color_rules(self, rules: list[ColorRule]) -> None:
        self.store.set_color_rules(rules)

    def set_active_mode(self, value: bool) -> None:
        self.store.set_active_mode(value)

    def on_update(self, callback: Callable[[], None]) -> Subscription:
        return self.store.on_update(callback)

    def dispose(self) -> None:
        self.debug_tracker.dispose()
