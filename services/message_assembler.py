"""Turn Gmail message resources into speakable ``MessageRecord`` objects."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, tzinfo
from typing import Dict, List, Optional, Sequence

from models.message_record import DEFAULT_SENDER, DEFAULT_SUBJECT, MessageRecord
from models.mime_part import parse_payload
from services.body_extractor import extract_body
from services.errors import FetchFailure, MailServiceError
from services.gmail_service import GmailService

LOGGER = logging.getLogger(__name__)
PAGE_SIZE = 5


def header_value(headers: Sequence[Dict[str, str]], name: str) -> Optional[str]:
    """Return the value of the first header named exactly ``name``."""

    for header in headers:
        if header.get("name") == name:
            return header.get("value")
    return None


def format_timestamp(epoch_ms: int | str | None, tz: Optional[tzinfo] = None) -> str:
    """Render a millisecond epoch as ``M/D/YYYY, h:MM:SS AM``."""

    try:
        millis = int(epoch_ms or 0)
    except (TypeError, ValueError):
        millis = 0
    moment = datetime.fromtimestamp(millis / 1000, tz=tz)
    if tz is None:
        moment = moment.astimezone()
    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return (
        f"{moment.month}/{moment.day}/{moment.year}, "
        f"{hour}:{moment.minute:02d}:{moment.second:02d} {meridiem}"
    )


def build_record(message: Dict, tz: Optional[tzinfo] = None) -> MessageRecord:
    payload = message.get("payload") or {}
    headers = payload.get("headers") or []
    return MessageRecord(
        id=message.get("id", ""),
        subject=header_value(headers, "Subject") or DEFAULT_SUBJECT,
        sender=header_value(headers, "From") or DEFAULT_SENDER,
        timestamp=format_timestamp(message.get("internalDate"), tz),
        body=extract_body(parse_payload(payload)),
    )


class MessageAssembler:
    """Fetch a page of messages concurrently and assemble their records."""

    def __init__(self, gmail: GmailService, timeout: float = 30.0, tz: Optional[tzinfo] = None):
        self._gmail = gmail
        self._timeout = timeout
        self._tz = tz

    async def list_messages(self, access_token: str) -> List[MessageRecord]:
        try:
            return await asyncio.wait_for(self._list_messages(access_token), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            LOGGER.error("Listing messages timed out after %ss", self._timeout)
            raise FetchFailure(
                "Failed to fetch emails", f"Gmail request timed out after {self._timeout}s"
            ) from exc

    async def _list_messages(self, access_token: str) -> List[MessageRecord]:
        message_ids = await asyncio.to_thread(self._gmail.list_message_ids, access_token, PAGE_SIZE)
        if not message_ids:
            return []
        fetches = [self._fetch_record(access_token, message_id) for message_id in message_ids]
        return list(await asyncio.gather(*fetches))

    async def _fetch_record(self, access_token: str, message_id: str) -> MessageRecord:
        try:
            message = await asyncio.to_thread(self._gmail.get_message, access_token, message_id)
        except MailServiceError:
            raise
        except Exception as exc:  # noqa: BLE001 - surface as a fetch failure with detail
            LOGGER.exception("Unexpected error fetching message %s", message_id)
            raise FetchFailure("Failed to fetch emails", str(exc)) from exc
        return build_record(message, self._tz)
