from fastapi import APIRouter, Depends

from vizual.api.dependencies import get_hub
from vizual.api.hub import GraphHub
from vizual.api.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(hub: GraphHub = Depends(get_hub)) -> HealthResponse:
    """Served root, graph size and the tracked debug session, if any."""
    store = hub.controller.store
    return HealthResponse(
        root=store.root_locator,
        node_count=len(store.get_nodes()),
        debug_session=hub.controller.debug_tracker.current_session_id,
    )
