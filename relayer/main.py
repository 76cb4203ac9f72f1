import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from relayer.api import events
from relayer.api.errors import APIError, api_error_handler, http_error_handler
from relayer.config import Settings, get_settings
from relayer.services.backend import Backend, create_backend

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, backend: Optional[Backend] = None) -> FastAPI:
    """
    Build the relayer API.

    The backend is created from ``settings`` unless one is injected, so tests
    can run against an isolated store and a fake Linera client.
    """
    settings = settings or get_settings()
    backend = backend or create_backend(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Stop the Linera worker pool
        backend.close()

    app = FastAPI(
        title="Activity Relayer",
        description="Relays activity events into a local store and a Linera application",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.backend = backend

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    app.include_router(events.router)

    @app.get("/")
    def read_root():
        return {
            "message": "Activity Relayer API",
            "status": "running",
            "version": "0.1.0",
            "docs": "/docs",
        }

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "linera": backend.linera_enabled}

    return app


def run():
    """Serve the relayer with uvicorn using the environment's settings."""
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"Relayer listening on {settings.host}:{settings.port}")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
