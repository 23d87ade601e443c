# File: voicecrm/api/app.py
import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from voicecrm.core.database.connection import SessionLocal
from voicecrm.core.database.init_db import init_db
from voicecrm.core.errors import NotFound, ValidationError, VoiceCrmError
from voicecrm.core.logging_config import configure_logging
from voicecrm.core.model_lifecycle.orchestrator import ModelOrchestrator
from voicecrm.features.activities.data.repository import SqlActivityRepository
from voicecrm.features.activities.service.activity_service import ActivityService
from voicecrm.features.activities.service.review_queue import ReviewQueueService
from voicecrm.features.scoring.service.scoring_engine import ScoringEngine
from voicecrm.features.transcription.service.api import build_gateway
from voicecrm.features.transcription.service.gateway import TranscriptionGateway
from voicecrm.features.voice_pipeline.service.pipeline import VoicePipeline
from .auth import BearerTokenAuth
from .routes.activities import router as activities_router
from .routes.audio import router as audio_router
from .routes.health import router as health_router

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    400: "bad_request",
    401: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
    422: "validation_error",
}


def _envelope(status_code: int, error: str, message: str, headers=None, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "message": message, **extra},
        headers=headers,
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
        return _envelope(status.HTTP_404_NOT_FOUND, "not_found", str(exc))

    @app.exception_handler(ValidationError)
    async def domain_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        logger.info(f"Rejected input on {request.url.path}: {exc}")
        return _envelope(status.HTTP_422_UNPROCESSABLE_ENTITY, "validation_error", str(exc), fields=exc.fields)

    @app.exception_handler(VoiceCrmError)
    async def server_error_handler(request: Request, exc: VoiceCrmError) -> JSONResponse:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")
        return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "server_error", "Internal server error")

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        fields = [str(err["loc"][-1]) for err in exc.errors()]
        return _envelope(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "validation_error",
            "Invalid request format. Please check your request and try again.",
            fields=fields,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _envelope(
            exc.status_code,
            _HTTP_ERROR_CODES.get(exc.status_code, "http_error"),
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.url.path}")
        return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "server_error", "Internal server error")


def create_app(tokens: Optional[Dict[str, str]] = None,
               gateway: Optional[TranscriptionGateway] = None,
               session_factory=None,
               create_schema: bool = True) -> FastAPI:
    """
    Builds the API. Tests pass their own tokens, gateway and session factory;
    production reads everything from settings.
    """
    configure_logging()
    session_factory = session_factory or SessionLocal
    if create_schema:
        init_db(session_factory.kw.get("bind") if hasattr(session_factory, "kw") else None)

    app = FastAPI(title="VoiceCRM API", version="0.1.0")

    scoring = ScoringEngine()
    repository = SqlActivityRepository(session_factory)
    app.state.session_factory = session_factory
    app.state.auth = BearerTokenAuth(tokens)
    app.state.scoring = scoring
    app.state.repository = repository
    app.state.gateway = gateway or build_gateway()
    app.state.pipeline = VoicePipeline(app.state.gateway)
    app.state.activity_service = ActivityService(repository=repository, scoring=scoring)
    app.state.review_queue = ReviewQueueService(repository=repository, scoring=scoring)

    _register_exception_handlers(app)

    @app.on_event("shutdown")
    async def release_models() -> None:
        ModelOrchestrator().release()
        logger.info("Resident models released")

    app.include_router(health_router)
    app.include_router(audio_router)
    app.include_router(activities_router)

    logger.info(f"VoiceCRM API ready (transcription: {app.state.gateway.backend_name})")
    return app
