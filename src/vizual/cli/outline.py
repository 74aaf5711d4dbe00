from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from vizual.adapters.treesitter import outline_from_file
from vizual.core.errors import ResolutionError
from vizual.core.ports.symbols import OutlineSymbol
from vizual.core.symbols import map_symbol_kind

console = Console()


def _add_symbols(branch: Tree, symbols: list[OutlineSymbol]) -> None:
    for symbol in symbols:
        r = symbol.range
        label = (
            f"{escape(symbol.name)} [dim]{map_symbol_kind(symbol.kind).value} "
            f"{r.start_line}:{r.start_column}-{r.end_line}:{r.end_column}[/dim]"
        )
        _add_symbols(branch.add(label), symbol.children)


def outline(
    file: Annotated[Path, typer.Argument(help="Source file to outline.")],
) -> None:
    """Print the symbol outline of a source file (zero-based positions)."""
    try:
        symbols = outline_from_file(file)
    except ResolutionError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from None

    rendered = Tree(f"[bold]{escape(file.name)}[/bold]")
    _add_symbols(rendered, symbols)
    console.print(rendered)
