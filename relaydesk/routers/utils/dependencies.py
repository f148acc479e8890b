from fastapi import Request

from relaydesk.core.app_state import AppState


def get_app_state(request: Request) -> AppState:
    """FastAPI dependency returning the application's shared state."""
    return request.app.state.relay
