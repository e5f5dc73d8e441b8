from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from app.core.config import Settings, settings as default_settings
from app.api.api_v1.api import api_router
from app.core.errors import AppError
from app.core.storage import build_blob_storage
from app.services.accounts import AccountService
from app.store import build_store
from app.utils.logging import setup_file_logging

# Configure logging
logging.basicConfig(
    level=getattr(logging, default_settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    if settings.LOG_DIR:
        setup_file_logging(settings.LOG_DIR)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan context manager for FastAPI application.
        Handles startup and shutdown events.
        """
        # Startup
        logger.info("Starting application...")

        app.state.store = await build_store(settings)
        app.state.blob_storage = build_blob_storage(settings)
        if settings.SEED_DEMO_ACCOUNTS:
            await AccountService(app.state.store, settings).seed_demo_accounts()

        yield

        # Shutdown
        logger.info("Shutting down application...")
        await app.state.store.close()

    # Create FastAPI application
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=settings.DESCRIPTION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add compression middleware if enabled
    if settings.ENABLE_RESPONSE_COMPRESSION:
        app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_STR)

    # Photos stored on local disk are served by the API itself
    if settings.STORAGE_BACKEND == "local":
        os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
        app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

    @app.get("/")
    async def root():
        """
        Root endpoint that returns basic API information.
        """
        return {
            "message": f"Welcome to {settings.PROJECT_NAME}",
            "version": settings.VERSION,
            "documentation": "/docs"
        }

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, log_level=default_settings.LOG_LEVEL.lower())
