from __future__ import annotations

import logging
from collections.abc import Sequence

from vizual.core.errors import ResolutionError
from vizual.core.ports.host import Notifier
from vizual.core.ports.symbols import OutlineSymbol, SymbolKind, SymbolResolver
from vizual.core.store import GraphStore
from vizual.models import GraphNode, NodeKind, SourceRange

logger = logging.getLogger(__name__)

_SYMBOL_KIND_MAP: dict[SymbolKind, NodeKind] = {
    SymbolKind.CLASS: NodeKind.CLASS,
    SymbolKind.FUNCTION: NodeKind.FUNCTION,
    SymbolKind.METHOD: NodeKind.METHOD,
    SymbolKind.VARIABLE: NodeKind.VARIABLE,
    SymbolKind.INTERFACE: NodeKind.INTERFACE,
    SymbolKind.ENUM: NodeKind.ENUM,
    SymbolKind.NAMESPACE: NodeKind.NAMESPACE,
    SymbolKind.MODULE: NodeKind.NAMESPACE,
    SymbolKind.PROPERTY: NodeKind.PROPERTY,
    SymbolKind.FIELD: NodeKind.PROPERTY,
    SymbolKind.CONSTANT: NodeKind.CONSTANT,
    SymbolKind.CONSTRUCTOR: NodeKind.CONSTRUCTOR,
}


def map_symbol_kind(kind: SymbolKind) -> NodeKind:
    return _SYMBOL_KIND_MAP.get(kind, NodeKind.UNKNOWN)


def make_symbol_id(file_locator: str, symbol_path: str, source_range: SourceRange) -> str:
    """Stable id: unchanged files re-expand to identical ids."""
    return f"{file_locator}::{symbol_path}::{source_range.start_line}:{source_range.start_column}"


class SymbolExpander:
    """Lazily populates file nodes with the symbol outline of the file."""

    def __init__(self, store: GraphStore, resolver: SymbolResolver, notifier: Notifier) -> None:
        self._store = store
        self._resolver = resolver
        self._notifier = notifier

    async def expand_file(self, node_id: str) -> None:
        node = self._store.get_node(node_id)
        if node is None or node.kind is not NodeKind.FILE or node.locator is None:
            return
        if node.is_expanded and not node.is_truncated:
            return

        if self._store.is_over_node_limit():
            self._notifier.warn(
                f"Node limit ({self._store.filters.max_nodes}) reached. Increase limit in filters."
            )
            return

        try:
            symbols = await self._resolver.outline(node.locator)
        except (ResolutionError, OSError) as exc:
            # A file without a usable outline is a terminal leaf, not an error.
            logger.debug("No symbols for %s: %s", node.locator, exc)
            symbols = []

        if self._store.get_node(node_id) is not node:
            logger.debug("Discarding outline for %s, node no longer in graph", node_id)
            return

        if not symbols:
            node.is_leaf = True
            node.is_truncated = False
            self._store.set_node_expanded(node_id, True)
            return

        complete = self._add_symbols(node.locator, symbols, node_id, "")
        node.is_truncated = not complete
        self._store.set_node_expanded(node_id, True)

    def _add_symbols(
        self,
        file_locator: str,
        symbols: Sequence[OutlineSymbol],
        parent_id: str,
        symbol_path: str,
    ) -> bool:
        """Walk ``symbols`` depth-first. Returns False if the node limit cut the walk short."""
        for symbol in symbols:
            current_path = f"{symbol_path}.{symbol.name}" if symbol_path else symbol.name
            symbol_id = make_symbol_id(file_locator, current_path, symbol.range)

            if not self._store.has_node(symbol_id):
                if self._store.is_over_node_limit():
                    return False
                self._store.add_node(
                    GraphNode(
                        id=symbol_id,
                        label=symbol.name,
                        kind=map_symbol_kind(symbol.kind),
                        locator=file_locator,
                        range=symbol.range,
                        is_leaf=not symbol.children,
                    )
                )
            self._store.add_edge(parent_id, symbol_id)

            if symbol.children and not self._add_symbols(file_locator, symbol.children, symbol_id, current_path):
                return False
        return True
