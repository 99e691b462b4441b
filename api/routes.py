"""HTTP routes for the Gmail reader."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Header, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse

from services.errors import AuthFailure, MailServiceError, MissingToken

LOGGER = logging.getLogger(__name__)

router = APIRouter()


def resolve_token(access_token: Optional[str], authorization: Optional[str]) -> Optional[str]:
    """Prefer the query parameter, then a ``Bearer`` authorization header."""

    if access_token:
        return access_token
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    return None


# ============================================================================
# OAuth
# ============================================================================


@router.get("/auth")
def start_authorization(request: Request) -> RedirectResponse:
    url = request.app.state.auth.authorization_url()
    return RedirectResponse(url)


@router.get("/auth/callback")
def authorization_callback(request: Request, code: str = Query(default="")):
    try:
        token = request.app.state.auth.exchange_code(code)
    except AuthFailure as exc:
        LOGGER.error("OAuth2 Error: %s", exc.detail)
        return JSONResponse(status_code=500, content={"error": "OAuth2 authentication failed"})
    frontend_url = request.app.state.config.frontend_url
    return RedirectResponse(f"{frontend_url}?{urlencode({'access_token': token})}")


# ============================================================================
# Messages
# ============================================================================


@router.get("/emails")
async def list_emails(request: Request, access_token: Optional[str] = Query(default=None)) -> list:
    if not access_token:
        raise MissingToken(status_code=400)
    records = await request.app.state.assembler.list_messages(access_token)
    return [record.to_dict() for record in records]


@router.delete("/emails/{email_id}")
def trash_email(
    request: Request,
    email_id: str,
    access_token: Optional[str] = Query(default=None),
    authorization: Optional[str] = Header(default=None),
) -> dict:
    token = resolve_token(access_token, authorization)
    if not token:
        raise MissingToken()
    try:
        request.app.state.gmail.trash_message(token, email_id)
    except MailServiceError as exc:
        raise exc.with_context(emailId=email_id)
    return {"success": True, "message": "Email moved to trash", "emailId": email_id}


@router.delete("/emails/{email_id}/permanent")
def delete_email_permanently(
    request: Request,
    email_id: str,
    access_token: Optional[str] = Query(default=None),
    authorization: Optional[str] = Header(default=None),
) -> dict:
    token = resolve_token(access_token, authorization)
    if not token:
        raise MissingToken()
    try:
        request.app.state.gmail.delete_message(token, email_id)
    except MailServiceError as exc:
        raise exc.with_context(emailId=email_id)
    return {"success": True, "message": "Email permanently deleted"}


@router.get("/verify-permissions")
def verify_permissions(
    request: Request,
    access_token: Optional[str] = Query(default=None),
    authorization: Optional[str] = Header(default=None),
) -> dict:
    token = resolve_token(access_token, authorization)
    if not token:
        raise MissingToken()
    info = request.app.state.auth.token_info(token)
    return {"success": True, **info.to_dict()}


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}
