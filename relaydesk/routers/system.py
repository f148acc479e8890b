from fastapi import APIRouter, Depends

from relaydesk.core.app_state import AppState
from relaydesk.routers.utils.dependencies import get_app_state

router = APIRouter(tags=["system"])


@router.get("/health")
def health(state: AppState = Depends(get_app_state)) -> dict:
    """Liveness plus a summary of the relay state."""
    status = state.session.status
    return {
        "status": "ok",
        "app": state.settings.app_name,
        "environment": state.settings.environment,
        "session": status.value if status is not None else None,
        "chats": len(state.registry),
        "observers": state.hub.count,
    }
