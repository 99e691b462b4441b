from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

import google_auth_httplib2
import httplib2
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from services.errors import AuthFailure, DeleteFailure, FetchFailure, MailServiceError
from utils.logger import mask_token

LOGGER = logging.getLogger(__name__)

HttpFactory = Callable[[str], Any]


class GmailService:
    """Wrapper around the Gmail API for the operations we need.

    Every call takes the caller's access token and builds its own client, so
    concurrent requests never share credentials or an ``httplib2`` connection.
    """

    def __init__(self, user_id: str = "me", timeout: float = 30.0, http_factory: Optional[HttpFactory] = None):
        self._user_id = user_id
        self._timeout = timeout
        self._http_factory = http_factory or self._authorized_http

    @property
    def user_id(self) -> str:
        return self._user_id

    def _authorized_http(self, access_token: str) -> google_auth_httplib2.AuthorizedHttp:
        credentials = Credentials(token=access_token)
        # A bare access token cannot be refreshed; let a 401 surface as HttpError.
        return google_auth_httplib2.AuthorizedHttp(
            credentials,
            http=httplib2.Http(timeout=self._timeout),
            refresh_status_codes=(),
        )

    def _client(self, access_token: str):
        http = self._http_factory(access_token)
        return build("gmail", "v1", http=http, cache_discovery=False)

    def list_message_ids(self, access_token: str, max_results: int) -> List[str]:
        request = (
            self._client(access_token)
            .users()
            .messages()
            .list(userId=self.user_id, maxResults=max_results)
        )
        response = self._read(request, "Failed to fetch emails")
        messages = response.get("messages") or []
        LOGGER.info("Listed %s message ids for token %s", len(messages), mask_token(access_token))
        return [message["id"] for message in messages]

    def get_message(self, access_token: str, message_id: str) -> Dict:
        request = (
            self._client(access_token)
            .users()
            .messages()
            .get(userId=self.user_id, id=message_id, format="full")
        )
        return self._read(request, "Failed to fetch emails")

    def trash_message(self, access_token: str, message_id: str) -> None:
        LOGGER.info("Attempting to trash email %s with token %s", message_id, mask_token(access_token))
        request = self._client(access_token).users().messages().trash(userId=self.user_id, id=message_id)
        status = self._modify(request, message_id)
        LOGGER.info("Trash response status for %s: %s", message_id, status)

    def delete_message(self, access_token: str, message_id: str) -> None:
        LOGGER.info("Permanently deleting email %s with token %s", message_id, mask_token(access_token))
        request = self._client(access_token).users().messages().delete(userId=self.user_id, id=message_id)
        status = self._modify(request, message_id)
        LOGGER.info("Delete response status for %s: %s", message_id, status)

    def _read(self, request, message: str) -> Dict:
        try:
            status, body = _execute_with_status(request)
        except HttpError as exc:
            LOGGER.error("%s: %s", message, exc)
            raise _translate(exc, message, FetchFailure) from exc
        except RefreshError as exc:
            LOGGER.error("%s: %s", message, exc)
            raise AuthFailure(message, str(exc), code=401) from exc
        except (httplib2.HttpLib2Error, OSError) as exc:
            LOGGER.error("%s: %s", message, exc)
            raise FetchFailure(message, str(exc)) from exc
        if not _is_success(status):
            raise FetchFailure(message, f"Gmail API returned status code {status}", code=status)
        return body or {}

    def _modify(self, request, message_id: str) -> int:
        message = "Failed to delete email"
        try:
            status, _body = _execute_with_status(request)
        except HttpError as exc:
            LOGGER.error("%s %s: %s", message, message_id, exc)
            raise _translate(exc, message, DeleteFailure) from exc
        except RefreshError as exc:
            LOGGER.error("%s %s: %s", message, message_id, exc)
            raise AuthFailure(message, str(exc), code=401) from exc
        except (httplib2.HttpLib2Error, OSError) as exc:
            LOGGER.error("%s %s: %s", message, message_id, exc)
            raise DeleteFailure(message, str(exc)) from exc
        if not _is_success(status):
            raise DeleteFailure(message, f"Gmail API returned status code {status}", code=status)
        return status


def _execute_with_status(request) -> Tuple[int, Any]:
    """Execute ``request`` and return the HTTP status alongside the parsed body."""

    statuses: List[int] = []
    request.add_response_callback(lambda resp: statuses.append(resp.status))
    body = request.execute(num_retries=0)
    return (statuses[-1] if statuses else 200), body


def _is_success(status: int) -> bool:
    return 200 <= status < 300


def _translate(exc: HttpError, message: str, fallback: type[MailServiceError]) -> MailServiceError:
    status = exc.resp.status
    detail = exc.reason or str(exc)
    if status == 401:
        return AuthFailure(message, detail, code=401)
    return fallback(message, detail, code=status)
