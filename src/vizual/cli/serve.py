import typer
from rich.console import Console

from vizual.config import Settings, configure_logging, load_settings
from vizual.core.errors import ConfigurationError

serve_app = typer.Typer(help="Start servers.")
# stdout carries the MCP stdio transport
console = Console(stderr=True)


def _settings(**overrides: object) -> Settings:
    settings = load_settings()
    updates = {key: value for key, value in overrides.items() if value is not None}
    settings = settings.model_copy(update=updates)
    configure_logging(settings.log_level)
    return settings


@serve_app.command("api")
def api(
    root: str | None = None,
    host: str | None = None,
    port: int | None = None,
) -> None:
    """Start the HTTP and websocket server for renderers."""
    import uvicorn

    from vizual.api.app import create_app

    settings = _settings(root=root, host=host, port=port)
    try:
        app = create_app(settings)
    except ConfigurationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from None
    console.print(f"[green]Starting API server on {settings.host}:{settings.port}[/green]")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


@serve_app.command("mcp")
def mcp(
    root: str | None = None,
    transport: str = "stdio",
) -> None:
    """Start the MCP server."""
    from vizual.api.hub import GraphHub
    from vizual.mcp.server import create_mcp_server

    settings = _settings(root=root)
    try:
        hub = GraphHub(settings)
    except ConfigurationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from None
    server = create_mcp_server(hub)
    console.print(f"[green]Starting MCP server (transport: {transport})[/green]")
    server.run(transport=transport)  # type: ignore[arg-type]
