from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import RegistryConfig, load_config
from app.routers import (
    health,
    models,
    qr
)
from app.storage.registry import RegistryFacade

logger = logging.getLogger(__name__)


def create_app(config: Optional[RegistryConfig] = None, registry: Optional[RegistryFacade] = None) -> FastAPI:
    """Build the API; the registry backend is chosen once at startup"""
    config = config or load_config()

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "registry", None) is None:
            app.state.registry = RegistryFacade.from_config(config)
        logger.info(f"Model registry ready, storage backend: {app.state.registry.mode.value}")
        yield
        logger.info("Model registry shutting down")

    app = FastAPI(title="AR Model Registry API", lifespan=lifespan)
    app.state.config = config
    app.state.registry = registry

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(models.router, tags=["models"])
    app.include_router(qr.router, tags=["qr"])

    @app.get("/")
    async def root():
        return {
            "message": "AR Model Registry API",
            "version": "1.0.0",
            "status": "running"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.config.port)
