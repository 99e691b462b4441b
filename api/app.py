"""FastAPI application factory."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from services.auth_service import AuthService
from services.errors import MailServiceError
from services.gmail_service import GmailService
from services.message_assembler import MessageAssembler
from utils.config import AppConfig, load_config

LOGGER = logging.getLogger(__name__)


async def handle_mail_service_error(request: Request, exc: MailServiceError) -> JSONResponse:
    LOGGER.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(
    config: Optional[AppConfig] = None,
    gmail: Optional[GmailService] = None,
    auth: Optional[AuthService] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    config = config or load_config()
    gmail = gmail or GmailService(user_id=config.user_id, timeout=config.request_timeout)
    auth = auth or AuthService(config.oauth, timeout=config.request_timeout)

    app = FastAPI(title="Gmail Reader", description="Speakable Gmail messages over HTTP")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(MailServiceError, handle_mail_service_error)

    app.state.config = config
    app.state.gmail = gmail
    app.state.auth = auth
    app.state.assembler = MessageAssembler(gmail, timeout=config.request_timeout, tz=config.display_timezone)

    from api.routes import router

    app.include_router(router)
    LOGGER.info("Application configured for %s (CORS: %s)", config.environment, ", ".join(config.cors_origins))
    return app
