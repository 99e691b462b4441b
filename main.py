from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

import click
import uvicorn
from rich.console import Console
from rich.table import Table

from models.message_record import MessageRecord
from services.auth_service import AuthService
from services.errors import MailServiceError
from services.gmail_service import GmailService
from services.message_assembler import MessageAssembler
from utils.config import AppConfig, load_config
from utils.logger import configure_logging


LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class AppContext:
    config: AppConfig
    gmail: GmailService
    assembler: MessageAssembler
    auth: AuthService
    console: Console


def build_context(env_file: str) -> AppContext:
    config = load_config(env_file)
    configure_logging(config.log_dir, config.log_level)
    gmail = GmailService(user_id=config.user_id, timeout=config.request_timeout)
    return AppContext(
        config=config,
        gmail=gmail,
        assembler=MessageAssembler(gmail, timeout=config.request_timeout, tz=config.display_timezone),
        auth=AuthService(config.oauth, timeout=config.request_timeout),
        console=Console(),
    )


@click.group()
@click.option("--env-file", default=".env", show_default=True, help="Path to the .env file")
@click.pass_context
def cli(ctx: click.Context, env_file: str) -> None:
    """Read Gmail messages as speakable text."""

    try:
        ctx.obj = build_context(env_file)
    except ValueError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc


@cli.command("serve")
@click.option("--host", default=None, help="Bind address (defaults to HOST)")
@click.option("--port", type=int, default=None, help="Port (defaults to PORT)")
@click.option("--reload", is_flag=True, default=False, help="Reload on code changes")
@click.pass_obj
def serve(app: AppContext, host: Optional[str], port: Optional[int], reload: bool) -> None:
    """Run the HTTP service."""

    host = host or app.config.host
    port = port or app.config.port
    LOGGER.info("Server is running on http://%s:%s", host, port)
    uvicorn.run("api.app:create_app", factory=True, host=host, port=port, reload=reload, log_config=None)


@cli.command("emails")
@click.option("--token", envvar="ACCESS_TOKEN", required=True, help="OAuth2 access token")
@click.option("--full/--summary", default=False, help="Print the readable text of every message")
@click.pass_obj
def list_emails(app: AppContext, token: str, full: bool) -> None:
    """Fetch the latest messages and print them."""

    try:
        records = asyncio.run(app.assembler.list_messages(token))
    except MailServiceError as exc:
        raise click.ClickException(_describe(exc)) from exc
    if not records:
        app.console.print("[bold green]No emails found.[/bold green]")
        return
    if full:
        for record in records:
            app.console.rule(record.id)
            app.console.print(record.readable_text, markup=False, highlight=False)
        return
    app.console.print(_build_records_table(records))


@cli.command("trash")
@click.argument("email_id")
@click.option("--token", envvar="ACCESS_TOKEN", required=True, help="OAuth2 access token")
@click.pass_obj
def trash_email(app: AppContext, email_id: str, token: str) -> None:
    """Move a message to trash."""

    try:
        app.gmail.trash_message(token, email_id)
    except MailServiceError as exc:
        raise click.ClickException(_describe(exc)) from exc
    app.console.print(f"Email {email_id} moved to trash.")


@cli.command("delete")
@click.argument("email_id")
@click.option("--token", envvar="ACCESS_TOKEN", required=True, help="OAuth2 access token")
@click.confirmation_option(prompt="Permanently delete this email?")
@click.pass_obj
def delete_email(app: AppContext, email_id: str, token: str) -> None:
    """Permanently delete a message."""

    try:
        app.gmail.delete_message(token, email_id)
    except MailServiceError as exc:
        raise click.ClickException(_describe(exc)) from exc
    app.console.print(f"Email {email_id} permanently deleted.")


@cli.command("verify")
@click.option("--token", envvar="ACCESS_TOKEN", required=True, help="OAuth2 access token")
@click.pass_obj
def verify(app: AppContext, token: str) -> None:
    """Show the email, scopes and remaining lifetime of a token."""

    try:
        info = app.auth.token_info(token)
    except MailServiceError as exc:
        raise click.ClickException(_describe(exc)) from exc

    table = Table(title="Token permissions")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Email", info.email or "-")
    table.add_row("Scopes", "\n".join(info.scopes) or "-")
    table.add_row("Expires in", f"{max(info.expires_in_ms, 0) // 1000}s")
    app.console.print(table)


@cli.command("auth-url")
@click.pass_obj
def auth_url(app: AppContext) -> None:
    """Print the Google consent URL."""

    app.console.print(app.auth.authorization_url(), markup=False, highlight=False)


def _describe(exc: MailServiceError) -> str:
    return f"{exc.message}: {exc.detail}" if exc.detail else exc.message


def _build_records_table(records: List[MessageRecord]) -> Table:
    table = Table(title="Latest emails", show_lines=False)
    table.add_column("ID", overflow="fold")
    table.add_column("Date")
    table.add_column("From")
    table.add_column("Subject")
    table.add_column("Preview")
    for record in records:
        preview = record.body if len(record.body) <= 80 else f"{record.body[:77]}..."
        table.add_row(record.id, record.timestamp, record.sender, record.subject, preview)
    return table


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
