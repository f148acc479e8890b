from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from relaydesk.adapters.gateway import GatewayProviderClient
from relaydesk.core.app_state import AppState, build_provider_from_settings
from relaydesk.config import get_settings
from relaydesk.infra.logging_config import LoggingConfig, get_logger
from relaydesk.routers import dashboard, system, webhooks

logger = get_logger("main")


def create_app(testing: bool = False, state: Optional[AppState] = None) -> FastAPI:
    """
    Build the relay application.

    With `testing` set the provider session and the public tunnel are not
    started, so routes can be exercised without a gateway.
    """
    settings = state.settings if state is not None else get_settings()
    LoggingConfig(settings.log_level)
    if state is None:
        state = AppState(settings=settings, provider=build_provider_from_settings(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state.media.ensure_dir()
        state.config_store.load()
        if not testing:
            asyncio.get_running_loop().set_exception_handler(
                state.session.handle_loop_exception
            )
            await state.session.start()
            await state.tunnel.start()
        logger.info(
            "Relay started",
            extra={
                "context": {
                    "environment": settings.environment,
                    "provider": state.provider is not None,
                }
            },
        )
        try:
            yield
        finally:
            await state.scheduler.cancel_all()
            if not testing:
                await state.session.stop()
            if isinstance(state.provider, GatewayProviderClient):
                await state.provider.aclose()
            logger.info("Relay stopped")

    app = FastAPI(
        title="Relay Desk",
        description="Realtime dashboard relay for a WhatsApp support line",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.relay = state

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(system.router)
    app.include_router(webhooks.router)
    app.include_router(dashboard.router)
    app.mount(
        "/uploads",
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="uploads",
    )
    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(create_app(), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
