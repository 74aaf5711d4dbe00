from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from vizual.core.events import Subscription
from vizual.models import (
    DEFAULT_FILTERS,
    ColorRule,
    EdgeKind,
    FilterConfig,
    GraphEdge,
    GraphNode,
    default_color_rules,
)


@dataclass
class GraphState:
    root_locator: str
    nodes: dict[str, GraphNode] = field(default_factory=dict)
    edges: dict[str, GraphEdge] = field(default_factory=dict)
    filters: FilterConfig = field(default_factory=lambda: DEFAULT_FILTERS.model_copy(deep=True))
    color_rules: list[ColorRule] = field(default_factory=default_color_rules)
    active_mode: bool = False


def edge_id(from_id: str, to_id: str) -> str:
    return f"{from_id}->{to_id}"


class GraphStore:
    """Owns the node and edge collections plus the display configuration.

    Every mutator notifies all subscribers synchronously, once per call.
    Nothing here performs I/O.
    """

    def __init__(self, root_locator: str, filters: FilterConfig | None = None) -> None:
        self._state = GraphState(root_locator=root_locator)
        if filters is not None:
            self._state.filters = filters
        self._listeners: list[Callable[[], None]] = []

    # -- reads --------------------------------------------------------------

    @property
    def state(self) -> GraphState:
        return self._state

    @property
    def root_locator(self) -> str:
        return self._state.root_locator

    @property
    def filters(self) -> FilterConfig:
        return self._state.filters

    @property
    def color_rules(self) -> list[ColorRule]:
        return self._state.color_rules

    @property
    def active_mode(self) -> bool:
        return self._state.active_mode

    def get_node(self, node_id: str) -> GraphNode | None:
        return self._state.nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._state.nodes

    def get_nodes(self) -> list[GraphNode]:
        return list(self._state.nodes.values())

    def get_edges(self) -> list[GraphEdge]:
        return list(self._state.edges.values())

    def is_over_node_limit(self) -> bool:
        return len(self._state.nodes) >= self._state.filters.max_nodes

    # -- mutations ----------------------------------------------------------

    def add_node(self, node: GraphNode) -> None:
        self._state.nodes[node.id] = node
        self.emit_update()

    def add_edge(self, from_id: str, to_id: str, kind: EdgeKind = EdgeKind.CONTAINS) -> GraphEdge:
        eid = edge_id(from_id, to_id)
        edge = GraphEdge(id=eid, from_id=from_id, to_id=to_id, kind=kind)
        self._state.edges[eid] = edge
        self.emit_update()
        return edge

    def set_node_expanded(self, node_id: str, expanded: bool) -> None:
        node = self._state.nodes.get(node_id)
        if node is None:
            return
        node.is_expanded = expanded
        self.emit_update()

    def set_root_locator(self, root_locator: str) -> None:
        self._state.root_locator = root_locator
        self.clear()

    def set_filters(self, filters: FilterConfig | Mapping[str, Any]) -> None:
        """Shallow-merge ``filters`` into the current configuration."""
        if isinstance(filters, FilterConfig):
            update = filters.model_dump(exclude_unset=True)
        else:
            update = dict(filters)
        merged = {**self._state.filters.model_dump(), **update}
        self._state.filters = FilterConfig.model_validate(merged)
        self.emit_update()

    def set_color_rules(self, rules: list[ColorRule]) -> None:
        self._state.color_rules = list(rules)
        self.emit_update()

    def set_active_mode(self, value: bool) -> None:
        self._state.active_mode = value
        self.emit_update()

    def clear(self) -> None:
        self._state.nodes.clear()
        self._state.edges.clear()
        self.emit_update()

    # -- notification -------------------------------------------------------

    def on_update(self, callback: Callable[[], None]) -> Subscription:
        self._listeners.append(callback)

        def _remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return Subscription(_remove)

    def emit_update(self) -> None:
        for callback in list(self._listeners):
            callback()
