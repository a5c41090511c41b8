# backend/main.py
from fastapi import FastAPI, APIRouter
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import os
from typing import Optional

from loguru import logger

from docchat.core.config import settings
from docchat.core.logging import setup_logging
from docchat.core.state import AppServices, build_services
from docchat.api.endpoints import upload, sessions, events # Import endpoint routers
from docchat.api.endpoints import status as status_endpoint


def create_app(services: Optional[AppServices] = None) -> FastAPI:
    """Builds the app; tests pass prebuilt services, otherwise they are wired from settings at startup."""

    # --- Lifespan Function ---
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # --- Startup ---
        logger.info("Starting up backend server...")
        if services is not None:
            app.state.services = services
        else:
            os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
            os.makedirs(settings.SESSIONS_DIR, exist_ok=True)
            app.state.services = build_services(settings)
        logger.info(f"[Lifespan] Backend setup complete. Corpus size: {len(app.state.services.store)} chunks.")
        yield # API ready

        # --- Shutdown ---
        logger.info("Shutting down backend server...")

    # --- FastAPI App Instance ---
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan
    )

    # --- API Router Setup ---
    api_router = APIRouter()
    api_router.include_router(upload.router, prefix="/upload", tags=["Upload"])
    api_router.include_router(sessions.router, prefix="/chats", tags=["Chats"])
    api_router.include_router(status_endpoint.router, prefix="/status", tags=["Status"])

    app.include_router(api_router, prefix=settings.API_V1_STR)
    app.include_router(events.router, tags=["Events"])

    # --- Root Endpoint ---
    @app.get("/", tags=["Root"])
    async def read_root():
        return {"message": f"Welcome to {settings.PROJECT_NAME}"}

    # --- CORS Middleware ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


setup_logging(settings.LOG_LEVEL)
app = create_app()
