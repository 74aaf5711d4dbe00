from __future__ import annotations

import logging

from vizual.core.filters import should_include
from vizual.core.locators import child_locator, locator_to_path, relative_path
from vizual.core.ports.filesystem import DirectoryLister
from vizual.core.ports.host import Notifier
from vizual.core.store import GraphStore
from vizual.models import GraphNode, NodeKind

logger = logging.getLogger(__name__)


class DirectoryExpander:
    """Lazily populates folder nodes from a :class:`DirectoryLister`."""

    def __init__(self, store: GraphStore, lister: DirectoryLister, notifier: Notifier) -> None:
        self._store = store
        self._lister = lister
        self._notifier = notifier

    def initialize_root(self) -> GraphNode:
        root_locator = self._store.root_locator
        root = GraphNode(
            id=root_locator,
            label=locator_to_path(root_locator).name or root_locator,
            kind=NodeKind.FOLDER,
            locator=root_locator,
        )
        self._store.add_node(root)
        return root

    async def expand_folder(self, node_id: str) -> None:
        node = self._store.get_node(node_id)
        if node is None or node.kind is not NodeKind.FOLDER or node.locator is None:
            return
        if node.is_expanded and not node.is_truncated:
            return

        if self._store.is_over_node_limit():
            self._notifier.warn(
                f"Node limit ({self._store.filters.max_nodes}) reached. Increase limit in filters."
            )
            return

        try:
            entries = await self._lister.list(node.locator)
        except OSError as exc:
            logger.warning("Error expanding folder %s: %s", node.locator, exc)
            self._notifier.error(f"Failed to expand folder: {exc}")
            return

        # The listing is a suspension point; re-read the node in case the root changed meanwhile.
        if self._store.get_node(node_id) is not node:
            logger.debug("Discarding listing for %s, node no longer in graph", node_id)
            return

        filters = self._store.filters
        root_locator = self._store.root_locator
        truncated = False
        added = 0
        for entry in entries:
            locator = child_locator(node.locator, entry.name)
            if not should_include(relative_path(locator, root_locator), filters):
                continue

            if not self._store.has_node(locator):
                if self._store.is_over_node_limit():
                    truncated = True
                    break
                self._store.add_node(
                    GraphNode(
                        id=locator,
                        label=entry.name,
                        kind=NodeKind.FOLDER if entry.is_directory else NodeKind.FILE,
                        locator=locator,
                    )
                )
                added += 1
            self._store.add_edge(node_id, locator)

        node.is_truncated = truncated
        if not entries:
            node.is_leaf = True
        self._store.set_node_expanded(node_id, True)
        logger.debug("Expanded folder %s: %d new children%s", node.locator, added, " (truncated)" if truncated else "")
