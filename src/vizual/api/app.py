from __future__ import annotations

from fastapi import FastAPI

from vizual.api.hub import GraphHub
from vizual.api.lifespan import lifespan
from vizual.api.routes.graph import router as graph_router
from vizual.api.routes.health import router as health_router
from vizual.api.routes.ws import router as ws_router
from vizual.config import Settings, load_settings


def create_app(settings: Settings | None = None, hub: GraphHub | None = None) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(
        title="Vizual",
        description="Incremental code graph of a workspace with live debug state.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.hub = hub or GraphHub(settings)

    app.include_router(health_router, include_in_schema=False)
    app.include_router(graph_router)
    app.include_router(ws_router)

    return app
