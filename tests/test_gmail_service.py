from __future__ import annotations

import json
from typing import List, Tuple

import pytest
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.http import HttpMockSequence

from services import gmail_service
from services.errors import AuthFailure, DeleteFailure, FetchFailure
from services.gmail_service import GmailService


def _error(code: int, message: str) -> Tuple[dict, str]:
    return {"status": str(code)}, json.dumps({"error": {"code": code, "message": message}})


def _service(responses: List[Tuple[dict, str]], tokens: List[str] | None = None) -> GmailService:
    def factory(access_token: str) -> HttpMockSequence:
        if tokens is not None:
            tokens.append(access_token)
        return HttpMockSequence(list(responses))

    return GmailService(user_id="me", http_factory=factory)


def test_list_message_ids_returns_ids_in_order():
    tokens: List[str] = []
    body = json.dumps({"messages": [{"id": "a", "threadId": "t"}, {"id": "b", "threadId": "t"}]})
    service = _service([({"status": "200"}, body)], tokens)

    assert service.list_message_ids("token-abc", 5) == ["a", "b"]
    assert tokens == ["token-abc"]


def test_list_message_ids_handles_empty_mailbox():
    service = _service([({"status": "200"}, json.dumps({"resultSizeEstimate": 0}))])
    assert service.list_message_ids("token", 5) == []


def test_get_message_returns_raw_resource():
    resource = {"id": "a", "internalDate": "1704110400000", "payload": {"mimeType": "text/plain"}}
    service = _service([({"status": "200"}, json.dumps(resource))])
    assert service.get_message("token", "a") == resource


def test_rejected_token_is_an_auth_failure():
    service = _service([_error(401, "Invalid Credentials")])
    with pytest.raises(AuthFailure) as excinfo:
        service.get_message("expired", "a")
    assert excinfo.value.code == 401
    assert excinfo.value.status_code == 401


def test_server_error_is_a_fetch_failure_with_detail():
    service = _service([_error(500, "Backend Error")])
    with pytest.raises(FetchFailure) as excinfo:
        service.list_message_ids("token", 5)
    assert excinfo.value.code == 500
    assert "Backend Error" in excinfo.value.detail


def test_trash_accepts_success_status():
    service = _service([({"status": "200"}, json.dumps({"id": "a", "labelIds": ["TRASH"]}))])
    service.trash_message("token", "a")


def test_trash_failure_is_a_delete_failure():
    service = _service([_error(404, "Requested entity was not found.")])
    with pytest.raises(DeleteFailure) as excinfo:
        service.trash_message("token", "missing")
    assert excinfo.value.code == 404


def test_permanent_delete_accepts_no_content():
    service = _service([({"status": "204"}, "")])
    service.delete_message("token", "a")


def test_permanent_delete_accepts_any_2xx():
    service = _service([({"status": "200"}, "{}")])
    service.delete_message("token", "a")


def test_permanent_delete_auth_failure():
    service = _service([_error(401, "Invalid Credentials")])
    with pytest.raises(AuthFailure):
        service.delete_message("token", "a")


def test_expired_token_through_default_transport_is_an_auth_failure(monkeypatch: pytest.MonkeyPatch):
    transport = HttpMockSequence([_error(401, "Invalid Credentials")] * 3)
    monkeypatch.setattr(gmail_service.httplib2, "Http", lambda timeout=None: transport)
    service = GmailService(user_id="me", timeout=5)

    with pytest.raises(AuthFailure) as excinfo:
        service.trash_message("expired", "a")

    assert excinfo.value.code == 401
    assert excinfo.value.status_code == 401
    assert len(transport.request_sequence) == 1


def test_refresh_attempt_on_bare_token_is_an_auth_failure():
    def factory(access_token: str) -> AuthorizedHttp:
        return AuthorizedHttp(
            Credentials(token=access_token),
            http=HttpMockSequence([_error(401, "Invalid Credentials")] * 3),
        )

    service = GmailService(user_id="me", http_factory=factory)

    with pytest.raises(AuthFailure) as excinfo:
        service.delete_message("expired", "a")
    assert excinfo.value.code == 401

    with pytest.raises(AuthFailure):
        service.list_message_ids("expired", 5)
