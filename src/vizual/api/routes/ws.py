from __future__ import annotations

from fastapi import APIRouter, Depends, WebSocket

from vizual.api.connection import GraphConnection
from vizual.api.dependencies import get_hub
from vizual.api.hub import GraphHub

router = APIRouter()


@router.websocket("/ws")
async def graph_socket(websocket: WebSocket, hub: GraphHub = Depends(get_hub)) -> None:
    await GraphConnection(websocket, hub).run()
