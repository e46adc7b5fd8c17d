from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from nextcdn.app import App
from nextcdn.config import Config
from nextcdn.errors import UserError
from nextcdn.utils import now_millis
from nextcdn.web.error_handlers import general_exception_handler, request_validation_error_handler, user_error_handler
from nextcdn.web.openapi import set_custom_openapi
from nextcdn.web.routers import files_router, preview_router, upload_router

logger = structlog.get_logger(__name__)

SERVICE_NAME = "cdn"

try:
    VERSION = version("nextcdn")
except PackageNotFoundError:
    VERSION = "0.0.0"


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        app.state.app = app_instance
        app.state.config = config
        logger.info("starting", service=SERVICE_NAME, version=VERSION, bucket=config.s3_bucket_name)
        async with app_instance.lifespan():
            yield

    app = FastAPI(title="nextcdn API", lifespan=lifespan)

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/")
    async def health_check() -> dict[str, str | int]:
        return {"service": SERVICE_NAME, "timestamp": now_millis(), "version": VERSION}

    # Signed retrieval is public; everything under /api requires a session token
    app.include_router(files_router)
    app.include_router(upload_router, prefix="/api")
    app.include_router(preview_router, prefix="/api")

    assets_path = Path(config.assets_path)
    if assets_path.is_dir():
        logger.info("serving_static_assets", path=str(assets_path))
        app.mount("/assets", StaticFiles(directory=assets_path), name="assets")

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app, VERSION)

    return app
