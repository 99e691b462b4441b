from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

DEFAULT_SUBJECT = "No Subject"
DEFAULT_SENDER = "Unknown Sender"


@dataclass(slots=True)
class MessageRecord:
    """Flattened, speakable representation of a Gmail message."""

    id: str
    subject: str
    sender: str
    timestamp: str
    body: str

    @property
    def readable_text(self) -> str:
        # Sender and subject must be announced before the body.
        return format_readable_text(self.sender, self.subject, self.timestamp, self.body)

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "subject": self.subject,
            "from": self.sender,
            "timestamp": self.timestamp,
            "body": self.body,
            "readableText": self.readable_text,
        }


@dataclass(slots=True)
class TokenInfo:
    email: str | None
    scopes: List[str]
    expires_in_ms: int

    def to_dict(self) -> Dict:
        return {"email": self.email, "scopes": list(self.scopes), "expiresIn": self.expires_in_ms}


def format_readable_text(sender: str, subject: str, timestamp: str, body: str) -> str:
    return f"From: {sender}\nSubject: {subject}\nDate: {timestamp}\n\n{body}"
