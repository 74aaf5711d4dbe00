import typer

from vizual.cli.outline import outline
from vizual.cli.serve import serve_app
from vizual.cli.tree import tree

app = typer.Typer(
    name="vizual",
    help="Vizual CLI: explore a workspace as a graph of folders, files and symbols.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("tree")(tree)
app.command("outline")(outline)
app.add_typer(serve_app, name="serve")


def main() -> None:
    app()
