"""FastAPI application factory for the radio console server."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from fm_radio_console.config import RadioConfig
from fm_radio_console.console import RadioConsole
from fm_radio_console.server.routes import router
from fm_radio_console.server.ws import router as ws_router


def create_app(console: RadioConsole | None = None, cfg: RadioConfig | None = None) -> FastAPI:
    console = console or RadioConsole(cfg or RadioConfig())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Connectivity is checked once per process; it is not polled afterwards.
        await console.start()
        try:
            yield
        finally:
            await console.stop()

    app = FastAPI(title="FM Radio Console", lifespan=lifespan)
    app.state.console = console
    app.include_router(router)
    app.include_router(ws_router)
    return app


# Provide a default app instance for non-factory uvicorn usage.
app = create_app()
