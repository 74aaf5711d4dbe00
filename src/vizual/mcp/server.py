"""FastMCP server exposing the code graph as tools."""

from __future__ import annotations

from typing import Any

from fastmcp import FastMCP

from vizual.api.hub import GraphHub


def create_mcp_server(hub: GraphHub) -> FastMCP:
    """Create a FastMCP server wired to the given hub.

    The hub is started lazily on the first tool call.
    """

    mcp = FastMCP("vizual", instructions="Explore a workspace as an incremental graph of folders, files and symbols.")

    @mcp.tool()
    async def graph_snapshot() -> dict[str, Any]:
        """Return all nodes and edges currently in the graph."""
        await hub.start()
        return hub.graph_snapshot().to_wire()

    @mcp.tool()
    async def expand_node(node_id: str) -> dict[str, Any]:
        """Expand a folder into its entries or a file into its symbols."""
        await hub.start()
        if hub.controller.store.get_node(node_id) is None:
            return {"error": f"Unknown node: {node_id}"}
        before = {node.id for node in hub.controller.store.get_nodes()}
        await hub.controller.expand_node(node_id)
        added = [node for node in hub.controller.store.get_nodes() if node.id not in before]
        return {
            "nodeId": node_id,
            "added": [node.model_dump(mode="json", by_alias=True) for node in added],
            "overLimit": hub.controller.store.is_over_node_limit(),
        }

    @mcp.tool()
    async def node_details(node_id: str) -> dict[str, Any]:
        """Return one node with the ids of its direct children."""
        await hub.start()
        store = hub.controller.store
        node = store.get_node(node_id)
        if node is None:
            return {"error": f"Unknown node: {node_id}"}
        children = [edge.to_id for edge in store.get_edges() if edge.from_id == node_id]
        return {"node": node.model_dump(mode="json", by_alias=True), "children": children}

    @mcp.tool()
    async def set_filters(
        include: list[str] | None = None,
        exclude: list[str] | None = None,
        max_depth: int | None = None,
        max_nodes: int | None = None,
    ) -> dict[str, Any]:
        """Update glob filters and limits. Omitted values are left unchanged."""
        await hub.start()
        update = {
            key: value
            for key, value in {
                "include_patterns": include,
                "exclude_patterns": exclude,
                "max_depth": max_depth,
                "max_nodes": max_nodes,
            }.items()
            if value is not None
        }
        hub.controller.set_filters(update)
        return hub.controller.store.filters.model_dump(mode="json", by_alias=True)

    @mcp.tool()
    async def set_active_mode(value: bool) -> str:
        """Toggle active mode, which dims every node except the focused file and files with breakpoints."""
        await hub.start()
        hub.controller.set_active_mode(value)
        return f"Active mode {'enabled' if value else 'disabled'}"

    return mcp
