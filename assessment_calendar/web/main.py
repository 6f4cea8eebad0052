from __future__ import annotations

from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from assessment_calendar.infrastructure.config import get_settings
from assessment_calendar.infrastructure.db import (
    check_database_connection,
    create_database_engine,
    create_session_factory,
)
from assessment_calendar.infrastructure.logging import clear_context, get_logger, set_context
from assessment_calendar.utils.seed import initialise_database
from assessment_calendar.web.routes import api, index
from assessment_calendar.web.schemas import ErrorResponse

logger = get_logger(__name__)


def _envelope(status_code: int, message: str, error: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message, error=error).to_content(),
    )


def create_application() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app.title,
        version=settings.app.version,
        debug=settings.app.debug,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=settings.security.cors_methods,
        allow_headers=["*"],
    )

    app.include_router(api.router)
    app.include_router(index.router)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        clear_context()
        set_context(request_id=uuid4().hex[:12], method=request.method, path=request.url.path)
        return await call_next(request)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return _envelope(status.HTTP_404_NOT_FOUND, "Endpoint not found")
        return _envelope(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )
        logger.warning(f"Rejected request {request.method} {request.url.path}: {problems}")
        return _envelope(status.HTTP_400_BAD_REQUEST, "Invalid request", problems)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        current = get_settings()
        detail = str(exc) if current.app.debug or current.is_development() else "Internal server error"
        return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Something went wrong!", detail)

    @app.on_event("startup")
    async def startup_event() -> None:
        config = settings.database
        engine = create_database_engine(config)
        if check_database_connection(engine):
            initialise_database(engine)
        app.state.db_config = config
        app.state.db_engine = engine
        app.state.session_factory = create_session_factory(engine)
        app.state.session_factory_config = config.model_dump()
        logger.info(f"{settings.app.title} {settings.app.version} ready")

    return app


app = create_application()
