import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from vizual.adapters.dap import DapDebugHost
from vizual.adapters.filesystem import LocalDirectoryLister
from vizual.adapters.treesitter import TreeSitterSymbolResolver
from vizual.adapters.workspace import LocalEditor, LoggingNotifier, WorkspaceState
from vizual.core.controller import Collaborators, GraphController
from vizual.core.errors import ConfigurationError
from vizual.core.store import GraphStore
from vizual.models import FilterConfig, GraphNode, NodeKind

console = Console()


def _build_controller(root: Path, max_nodes: int) -> GraphController:
    workspace = WorkspaceState()
    collaborators = Collaborators(
        lister=LocalDirectoryLister(),
        resolver=TreeSitterSymbolResolver(),
        notifier=LoggingNotifier(),
        editor=LocalEditor(),
        breakpoints=workspace,
        focus=workspace,
        debug_host=DapDebugHost(workspace),
    )
    return GraphController(root, collaborators, filters=FilterConfig(max_nodes=max_nodes))


def _children(store: GraphStore, node_id: str) -> list[GraphNode]:
    children = []
    for edge in store.get_edges():
        if edge.from_id == node_id:
            child = store.get_node(edge.to_id)
            if child is not None:
                children.append(child)
    return children


async def expand_to_depth(controller: GraphController, depth: int) -> None:
    """Expand the graph breadth-first, ``depth`` levels below the root."""
    await controller.initialize()
    try:
        frontier = [controller.store.root_locator]
        for _ in range(depth):
            next_frontier: list[str] = []
            for node_id in frontier:
                await controller.expand_node(node_id)
                next_frontier.extend(child.id for child in _children(controller.store, node_id))
            frontier = next_frontier
    finally:
        controller.dispose()


def _label(node: GraphNode) -> str:
    if node.kind is NodeKind.FOLDER:
        text = f"[bold blue]{escape(node.label)}/[/bold blue]"
    elif node.kind is NodeKind.FILE:
        text = escape(node.label)
    else:
        text = f"{escape(node.label)} [dim]{node.kind.value}[/dim]"
    if node.is_truncated:
        text += " [yellow](truncated)[/yellow]"
    return text


def _render(store: GraphStore, node: GraphNode, branch: Tree) -> None:
    for child in _children(store, node.id):
        _render(store, child, branch.add(_label(child)))


def tree(
    root: Annotated[Path, typer.Argument(help="Folder to use as the graph root.")] = Path("."),
    depth: Annotated[int, typer.Option(min=0, help="Levels to expand below the root.")] = 2,
    max_nodes: Annotated[int, typer.Option(min=1, help="Node limit for the graph.")] = 1000,
) -> None:
    """Print the graph of a folder, expanded to the given depth."""
    try:
        controller = _build_controller(root, max_nodes)
    except ConfigurationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from None

    asyncio.run(expand_to_depth(controller, depth))

    store = controller.store
    root_node = store.get_node(store.root_locator)
    if root_node is None:
        raise typer.Exit(code=1)
    rendered = Tree(_label(root_node))
    _render(store, root_node, rendered)
    console.print(rendered)
    console.print(f"({len(store.get_nodes())} nodes)")
    if store.is_over_node_limit():
        console.print(f"[yellow]Node limit ({store.filters.max_nodes}) reached.[/yellow]")
