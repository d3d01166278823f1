import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger

from imagehost.config import Settings, settings as default_settings
from imagehost.errors import PayloadTooLarge, UploadError
from imagehost.middleware import BodySizeLimitMiddleware, add_request_context
from imagehost.routes.health import router as health_router
from imagehost.routes.upload import router as upload_router
from imagehost.services.uploads import PUBLIC_PREFIX, UploadHandler


def configure_logging(app_settings: Settings) -> None:
    logger.configure(patcher=lambda record: record["extra"].setdefault("request_id", "-"))
    logger.remove()
    logger.add(
        sys.stderr,
        level=app_settings.log_level.upper(),
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | req={extra[request_id]} | {name}:{function}:{line} | {message}",
    )


async def upload_error_handler(request: Request, exc: UploadError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


def create_app(app_settings: Settings | None = None) -> FastAPI:
    app_settings = app_settings or default_settings
    upload_path = app_settings.upload_path

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(app_settings)
        logger.bind(request_id="-").info(
            "Starting app app_name={} debug={} log_level={} upload_dir={} max_file_size={}",
            app_settings.app_name,
            app_settings.debug,
            app_settings.log_level,
            str(upload_path),
            app_settings.max_file_size,
        )
        yield
        logger.bind(request_id="-").info("Shutting down app app_name={}", app_settings.app_name)

    app = FastAPI(title=app_settings.app_name, debug=app_settings.debug, lifespan=lifespan)
    app.state.settings = app_settings
    app.state.upload_handler = UploadHandler(app_settings)

    app.add_middleware(
        BodySizeLimitMiddleware,
        max_body_size=app_settings.max_file_size + app_settings.multipart_overhead,
        error=PayloadTooLarge.for_limit(app_settings.max_file_size_mb),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(add_request_context)

    app.add_exception_handler(UploadError, upload_error_handler)

    app.include_router(health_router)
    app.include_router(upload_router)
    app.mount(PUBLIC_PREFIX, StaticFiles(directory=str(upload_path)), name="images")

    return app
