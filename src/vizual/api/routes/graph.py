from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from vizual.api.dependencies import get_hub
from vizual.api.hub import GraphHub

router = APIRouter(tags=["graph"])


@router.get("/graph")
async def graph(hub: GraphHub = Depends(get_hub)) -> dict[str, Any]:
    """Current nodes and edges, shaped like a ``graph/update`` message."""
    return hub.graph_snapshot().to_wire()


@router.get("/state")
async def state(hub: GraphHub = Depends(get_hub)) -> dict[str, Any]:
    return hub.state_snapshot().to_wire()
