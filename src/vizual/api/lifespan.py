from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from vizual.api.hub import GraphHub


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    hub: GraphHub = app.state.hub
    await hub.start()
    yield
    await hub.shutdown()
