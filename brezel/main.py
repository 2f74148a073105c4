# brezel/main.py
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from brezel.core.settings import settings
from brezel.api.routers.health_router import router as health_router
from brezel.api.routers.version_router import router as version_router


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(health_router)
    app.include_router(version_router)

    return app


# Uvicorn entrypoint: uvicorn brezel.main:app --port 8080
app = create_app()
