"""
FastAPI application entry point for the QuickStor backend.

Run with ``uvicorn backend.app:app --port 3000``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.config import get_settings
from backend.dependencies import get_kv_store
from backend.routes import router


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Creates the data file on first boot.
    get_kv_store()
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="QuickStor Backend (FastAPI)", version="0.1.0", lifespan=lifespan
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
