from __future__ import annotations

from starlette.requests import HTTPConnection

from vizual.api.hub import GraphHub


def get_hub(connection: HTTPConnection) -> GraphHub:
    """Return the hub created by the application lifespan."""
    hub: GraphHub = connection.app.state.hub
    return hub
