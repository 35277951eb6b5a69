from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.cors import CORSMiddleware

from app.api.router import api_router
from app.core.config import Settings, settings
from app.core.errors import IntakeError, PersistenceError
from app.db.session import Database
from app.middleware.logging import RequestLoggingMiddleware
from app.services.cv_storage import CvStorage

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("lti")


def _error_response(status_code: int, payload: dict, exc: Exception, config: Settings) -> JSONResponse:
    if config.expose_error_details:
        cause = exc.__cause__ or exc
        payload["details"] = str(cause)
    return JSONResponse(status_code=status_code, content=payload)


def _register_error_handlers(app: FastAPI, config: Settings) -> None:
    @app.exception_handler(IntakeError)
    async def _intake_error(request: Request, exc: IntakeError) -> JSONResponse:
        payload = exc.to_payload()
        if isinstance(exc, PersistenceError):
            logger.error(
                "persistence_error",
                exc_info=exc,
                extra={"path": request.url.path, "request_id": getattr(request.state, "request_id", None)},
            )
            return _error_response(exc.status_code, payload, exc, config)
        return JSONResponse(status_code=exc.status_code, content=payload)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = [".".join(str(part) for part in err.get("loc", ()) if part != "body") for err in exc.errors()]
        message = "Invalid request: " + ", ".join(problem for problem in problems if problem)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_error",
            exc_info=exc,
            extra={"path": request.url.path, "request_id": getattr(request.state, "request_id", None)},
        )
        payload = {"error": "Something broke! Please try again later."}
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, payload, exc, config)


def create_app(
    config: Settings = settings,
    *,
    database: Database | None = None,
    cv_storage: CvStorage | None = None,
) -> FastAPI:
    app = FastAPI(
        title=config.app_name,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.db = database or Database.from_settings(config)
    app.state.cv_storage = cv_storage or CvStorage.from_settings(config)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app, config)

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "Hola LTI!"

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "environment": config.environment}

    app.include_router(api_router)

    upload_dir = app.state.cv_storage.directory
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(app.state.cv_storage.url_prefix, StaticFiles(directory=upload_dir), name="uploads")

    @app.on_event("startup")
    async def _startup_db() -> None:
        db: Database = app.state.db
        await db.connect()
        if config.auto_create_tables:
            await db.create_all()

    @app.on_event("shutdown")
    async def _shutdown_db() -> None:
        await app.state.db.dispose()

    return app


app = create_app()
