from __future__ import annotations

from typing import Any, Dict, Optional


class MailServiceError(Exception):
    """Base error rendered as a JSON body at the HTTP boundary."""

    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.code = code
        self.context: Dict[str, Any] = {}

    def with_context(self, **context: Any) -> "MailServiceError":
        self.context.update(context)
        return self

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.detail:
            payload["details"] = self.detail
        if self.code is not None:
            payload["errorCode"] = self.code
        payload.update(self.context)
        return payload


class MissingToken(MailServiceError):
    status_code = 401

    def __init__(self, status_code: int = 401):
        super().__init__(
            "Access token is required",
            "No access token provided in query or authorization header",
        )
        self.status_code = status_code


class AuthFailure(MailServiceError):
    status_code = 401


class FetchFailure(MailServiceError):
    status_code = 500


class DeleteFailure(MailServiceError):
    status_code = 500
