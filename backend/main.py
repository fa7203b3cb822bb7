# backend/main.py
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from config import Settings
from database import build_engine, build_session_factory, init_db
from routes.auth import router as auth_router
from routes.products import router as products_router
from utils.cache import InMemoryStateCache, RedisStateCache, StateCache
from utils.errors import DataIntegrityError, FilterValidationError
from utils.file_storage import FileService, LocalFileService, S3FileService
from utils.google_oauth import GoogleOAuthClient
from utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


def build_file_service(settings: Settings) -> FileService:
    if settings.STORAGE_BACKEND == "s3":
        return S3FileService(settings.S3_BUCKET, region=settings.S3_REGION)
    return LocalFileService(Path(settings.UPLOAD_DIR), settings.PUBLIC_BASE_URL)


def build_state_cache(settings: Settings) -> StateCache:
    if settings.REDIS_URL:
        return RedisStateCache(settings.REDIS_URL)
    return InMemoryStateCache()


def create_app(
    settings: Optional[Settings] = None,
    *,
    session_factory: Optional[sessionmaker] = None,
    file_service: Optional[FileService] = None,
    state_cache: Optional[StateCache] = None,
    oauth_client: Optional[GoogleOAuthClient] = None,
) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL)

    # Initialisation
    if session_factory is None:
        engine = build_engine(settings.database_url)
        init_db(engine)
        session_factory = build_session_factory(engine)
    file_service = file_service or build_file_service(settings)
    state_cache = state_cache or build_state_cache(settings)
    oauth_client = oauth_client or GoogleOAuthClient(
        settings.GOOGLE_CLIENT_ID, settings.GOOGLE_CLIENT_SECRET, settings.GOOGLE_REDIRECT_URI,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.state_cache.close()

    app = FastAPI(title="Storefront API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.file_service = file_service
    app.state.state_cache = state_cache
    app.state.oauth_client = oauth_client

    # Local uploads are served by the app itself
    if isinstance(file_service, LocalFileService):
        app.mount("/media", StaticFiles(directory=str(file_service.root)), name="media")

    # CORS Configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(FilterValidationError)
    async def filter_validation_handler(request: Request, exc: FilterValidationError):
        return JSONResponse(status_code=400, content={"detail": str(exc), "field": exc.field})

    @app.exception_handler(DataIntegrityError)
    async def data_integrity_handler(request: Request, exc: DataIntegrityError):
        logger.error(f"Data integrity error on {request.url.path}: {exc}", extra={"context": exc.context})
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"Database error on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    # Router registration
    app.include_router(auth_router)
    app.include_router(products_router)

    @app.get("/")
    def read_root():
        return {"message": "Storefront API is running"}

    return app
