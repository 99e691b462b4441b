from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple, Union


@dataclass(frozen=True, slots=True)
class Leaf:
    """A content-carrying MIME part; ``body`` is the base64url payload."""

    media_type: str
    body: str | None = None


@dataclass(frozen=True, slots=True)
class Multipart:
    """A container part with at least one child."""

    media_type: str
    children: Tuple["MimePart", ...]


MimePart = Union[Leaf, Multipart]


def parse_payload(payload: Dict) -> MimePart:
    """Map a Gmail ``payload`` resource onto the MIME part variant."""

    media_type = payload.get("mimeType", "") or ""
    parts = payload.get("parts") or []
    if parts:
        return Multipart(media_type=media_type, children=tuple(parse_payload(part) for part in parts))
    body = payload.get("body") or {}
    return Leaf(media_type=media_type, body=body.get("data") or None)
