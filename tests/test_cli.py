from __future__ import annotations

import pytest
from click.testing import CliRunner
from rich.console import Console

import main
from models.message_record import MessageRecord, TokenInfo
from services.errors import FetchFailure


class FakeAssembler:
    def __init__(self, records=None, error=None):
        self.records = records or []
        self.error = error

    async def list_messages(self, access_token: str):
        if self.error:
            raise self.error
        return self.records


class FakeGmail:
    def __init__(self):
        self.trashed = []

    def trash_message(self, access_token: str, message_id: str) -> None:
        self.trashed.append((access_token, message_id))


class FakeAuth:
    def token_info(self, access_token: str) -> TokenInfo:
        return TokenInfo(email="a@b.com", scopes=["scope-a"], expires_in_ms=120_000)


@pytest.fixture
def context_factory(monkeypatch: pytest.MonkeyPatch):
    def install(assembler=None):
        context = main.AppContext(
            config=None,
            gmail=FakeGmail(),
            assembler=assembler or FakeAssembler(),
            auth=FakeAuth(),
            console=Console(width=200, force_terminal=False),
        )
        monkeypatch.setattr(main, "build_context", lambda env_file: context)
        return context

    return install


def test_emails_prints_readable_text(context_factory):
    record = MessageRecord(id="m1", subject="Hi", sender="a@b.com", timestamp="1/1/2024", body="Body")
    context_factory(FakeAssembler([record]))

    result = CliRunner().invoke(main.cli, ["emails", "--token", "tok", "--full"])

    assert result.exit_code == 0, result.output
    assert "From: a@b.com\nSubject: Hi\nDate: 1/1/2024\n\nBody" in result.output


def test_emails_reports_failures(context_factory):
    context_factory(FakeAssembler(error=FetchFailure("Failed to fetch emails", "Backend Error")))

    result = CliRunner().invoke(main.cli, ["emails", "--token", "tok"])

    assert result.exit_code == 1
    assert "Failed to fetch emails: Backend Error" in result.output


def test_trash_command(context_factory):
    context = context_factory()
    result = CliRunner().invoke(main.cli, ["trash", "m1", "--token", "tok"])
    assert result.exit_code == 0, result.output
    assert context.gmail.trashed == [("tok", "m1")]


def test_verify_command(context_factory):
    context_factory()
    result = CliRunner().invoke(main.cli, ["verify", "--token", "tok"])
    assert result.exit_code == 0, result.output
    assert "a@b.com" in result.output
    assert "120s" in result.output
