"""
Dashboard surface: the static client, uploads and the realtime socket.

Each socket is one observer. It gets the current state replayed on connect,
then every broadcast; the commands it sends run as tasks so a slow history
load never blocks the receive loop.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from pathlib import Path
from typing import Any, Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    UploadFile,
    WebSocket,
    WebSocketDisconnect,
)
from fastapi.responses import FileResponse

from relaydesk.core.app_state import AppState
from relaydesk.core.fanout import WebSocketObserver
from relaydesk.exceptions import MediaError
from relaydesk.infra.logging_config import get_logger
from relaydesk.routers.utils.dependencies import get_app_state

logger = get_logger("dashboard_router")

router = APIRouter(tags=["dashboard"])


@router.get("/", include_in_schema=False)
def index(state: AppState = Depends(get_app_state)) -> FileResponse:
    page = Path(state.settings.public_dir) / "index.html"
    if not page.is_file():
        raise HTTPException(status_code=404, detail="Dashboard not found")
    return FileResponse(page)


@router.get("/tunnel-url")
def tunnel_url(state: AppState = Depends(get_app_state)) -> dict[str, Optional[str]]:
    return {"url": state.tunnel.url}


@router.post("/upload")
async def upload(
    file: Optional[UploadFile] = File(None),
    state: AppState = Depends(get_app_state),
) -> dict[str, str]:
    """Store a dashboard upload and return its public URL."""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="Nenhum arquivo enviado")
    limit = state.settings.max_upload_bytes
    data = await file.read(limit + 1)
    if len(data) > limit:
        raise HTTPException(status_code=413, detail="Arquivo muito grande")
    try:
        asset = await asyncio.to_thread(
            state.media.store_upload, data, file.filename, file.content_type
        )
    except MediaError as e:
        logger.error("Upload failed: %s", e)
        raise HTTPException(status_code=500, detail="Falha ao salvar arquivo") from e
    return {"url": asset.url, "name": file.filename}


@router.websocket("/ws")
async def dashboard_socket(websocket: WebSocket) -> None:
    state: AppState = websocket.app.state.relay
    await websocket.accept()
    observer = WebSocketObserver(websocket, on_failure=state.disconnect_observer)
    state.connect_observer(observer)
    writer = asyncio.create_task(observer.run_writer())
    commands: set[asyncio.Task[None]] = set()
    try:
        while True:
            text = await websocket.receive_text()
            try:
                frame: Any = json.loads(text)
            except ValueError:
                logger.debug("Ignoring non-JSON dashboard frame")
                continue
            task = asyncio.create_task(state.dispatcher.dispatch(observer, frame))
            commands.add(task)
            task.add_done_callback(commands.discard)
    except WebSocketDisconnect:
        pass
    finally:
        state.disconnect_observer(observer)
        for task in list(commands):
            task.cancel()
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await writer
