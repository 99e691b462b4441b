from __future__ import annotations

import json
import logging
import time
from typing import Callable, Iterable, Optional
from urllib.parse import urlencode

from google.auth.exceptions import TransportError
from google.auth.transport.requests import Request
from google_auth_oauthlib.flow import Flow

from models.message_record import TokenInfo
from services.errors import AuthFailure, FetchFailure
from utils.config import OAuthConfig
from utils.logger import mask_token

LOGGER = logging.getLogger(__name__)
SCOPES: Iterable[str] = (
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.modify",
)
AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"
TOKEN_INFO_URI = "https://oauth2.googleapis.com/tokeninfo"


class AuthService:
    """OAuth2 web-flow helpers and token introspection for the Gmail scopes.

    No credentials are kept on the instance: the consent flow is rebuilt for
    every call and callers hold the access token themselves.
    """

    def __init__(
        self,
        oauth: OAuthConfig,
        timeout: float = 30.0,
        transport: Optional[Callable[..., object]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._oauth = oauth
        self._timeout = timeout
        self._transport = transport or Request()
        self._clock = clock

    def _client_config(self) -> dict:
        return {
            "web": {
                "client_id": self._oauth.client_id,
                "client_secret": self._oauth.client_secret,
                "auth_uri": AUTH_URI,
                "token_uri": TOKEN_URI,
                "redirect_uris": [self._oauth.redirect_uri],
            }
        }

    def _flow(self) -> Flow:
        return Flow.from_client_config(
            self._client_config(),
            scopes=list(SCOPES),
            redirect_uri=self._oauth.redirect_uri,
            autogenerate_code_verifier=False,
        )

    def authorization_url(self) -> str:
        url, _state = self._flow().authorization_url(access_type="offline")
        LOGGER.debug("Generated consent URL for client %s", self._oauth.client_id)
        return url

    def exchange_code(self, code: str) -> str:
        if not code:
            raise AuthFailure("OAuth2 authentication failed", "Missing authorization code")
        flow = self._flow()
        try:
            flow.fetch_token(code=code)
        except Exception as exc:  # noqa: BLE001 - oauthlib raises a wide range of errors
            LOGGER.error("OAuth2 code exchange failed: %s", exc)
            raise AuthFailure("OAuth2 authentication failed", str(exc)) from exc
        token = flow.credentials.token
        LOGGER.info("Exchanged authorization code for token %s", mask_token(token))
        return token

    def token_info(self, access_token: str) -> TokenInfo:
        url = f"{TOKEN_INFO_URI}?{urlencode({'access_token': access_token})}"
        try:
            response = self._transport(url=url, method="GET", timeout=self._timeout)
        except TransportError as exc:
            LOGGER.error("Token introspection request failed: %s", exc)
            raise FetchFailure("Failed to verify permissions", str(exc)) from exc

        body = _decode_json(response.data)
        if response.status in (400, 401):
            detail = body.get("error_description") or body.get("error") or "Invalid access token"
            raise AuthFailure("Failed to verify permissions", detail, code=401)
        if not 200 <= response.status < 300:
            raise FetchFailure(
                "Failed to verify permissions",
                f"Token info endpoint returned status code {response.status}",
                code=response.status,
            )
        return self._to_token_info(body)

    def _to_token_info(self, body: dict) -> TokenInfo:
        now_ms = int(self._clock() * 1000)
        if body.get("exp"):
            expires_in_ms = int(body["exp"]) * 1000 - now_ms
        else:
            expires_in_ms = int(body.get("expires_in", 0)) * 1000
        scopes = [scope for scope in str(body.get("scope", "")).split(" ") if scope]
        return TokenInfo(email=body.get("email"), scopes=scopes, expires_in_ms=expires_in_ms)


def _decode_json(data: bytes | str | None) -> dict:
    if not data:
        return {}
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError:
        return {}
    return parsed if isinstance(parsed, dict) else {}
