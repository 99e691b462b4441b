"""Select, decode and normalize the readable body of a Gmail payload."""

from __future__ import annotations

import base64
import binascii
import logging
import re
import textwrap
from typing import Optional, Sequence

from bs4 import BeautifulSoup, NavigableString, Tag

from models.mime_part import Leaf, MimePart, Multipart

LOGGER = logging.getLogger(__name__)

NO_CONTENT = "No Content"
WRAP_WIDTH = 100
# Levels of nested multipart searched below the top-level children.
NESTED_DESCENT_LIMIT = 1

PLAIN = "text/plain"
HTML = "text/html"

_DROPPED_TAGS = {"img", "script", "style", "head", "title", "noscript"}
_BLOCK_TAGS = {
    "address", "article", "aside", "blockquote", "dd", "div", "dl", "dt", "fieldset",
    "figcaption", "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6",
    "header", "hr", "li", "main", "nav", "ol", "p", "pre", "section", "table",
    "tbody", "thead", "tfoot", "tr", "ul",
}

_BLOCK_END = object()

_MANY_NEWLINES = re.compile(r"\n{3,}")
_INLINE_WHITESPACE = re.compile(r"[^\S\n]{2,}")


def extract_body(payload: MimePart) -> str:
    """Return the cleaned plain-text body of ``payload`` or ``NO_CONTENT``."""

    body = _resolve(payload)
    if body is None:
        LOGGER.debug("No decodable text part found in %s payload", payload.media_type)
        body = NO_CONTENT
    return clean_whitespace(body)


def _resolve(payload: MimePart) -> Optional[str]:
    if isinstance(payload, Leaf):
        return _render_leaf(payload, payload.media_type)
    return _search_children(payload.children, NESTED_DESCENT_LIMIT)


def _search_children(children: Sequence[MimePart], depth_left: int) -> Optional[str]:
    for media_type in (PLAIN, HTML):
        for child in children:
            if isinstance(child, Leaf):
                text = _render_leaf(child, media_type)
                if text is not None:
                    return text
    if depth_left <= 0:
        return None
    for child in children:
        if isinstance(child, Multipart):
            text = _search_children(child.children, depth_left - 1)
            if text is not None:
                return text
    return None


def _render_leaf(part: Leaf, media_type: str) -> Optional[str]:
    if media_type not in (PLAIN, HTML) or part.media_type != media_type or not part.body:
        return None
    decoded = decode_base64url(part.body)
    if decoded is None:
        return None
    if media_type == HTML:
        return html_to_text(decoded)
    return decoded


def decode_base64url(data: str) -> Optional[str]:
    """Decode Gmail's base64url payload, tolerating missing padding."""

    normalized = "".join(data.split()).replace("+", "-").replace("/", "_")
    normalized += "=" * (-len(normalized) % 4)
    try:
        raw = base64.urlsafe_b64decode(normalized)
    except (binascii.Error, ValueError):
        LOGGER.warning("Skipping part with invalid base64 payload")
        return None
    return raw.decode("utf-8", errors="replace")


def html_to_text(html: str, width: int = WRAP_WIDTH) -> str:
    """Convert markup to wrapped plain text, keeping anchor text only."""

    soup = BeautifulSoup(html, "html.parser")
    root = soup.body or soup

    chunks: list[str] = []
    _collect_text(root, chunks)
    lines = "".join(chunks).split("\n")
    wrapped = [_wrap_line(line, width) for line in lines]
    return "\n".join(wrapped)


def _collect_text(root: Tag, chunks: list[str]) -> None:
    # Explicit stack: markup nesting depth is unbounded.
    stack: list = list(reversed(root.contents))
    while stack:
        node = stack.pop()
        if node is _BLOCK_END:
            chunks.append("\n")
            continue
        if isinstance(node, NavigableString):
            if type(node) is NavigableString:
                chunks.append(str(node))
            continue
        if not isinstance(node, Tag) or node.name in _DROPPED_TAGS:
            continue
        if node.name == "br":
            chunks.append("\n")
            continue
        if node.name in _BLOCK_TAGS:
            chunks.append("\n")
            stack.append(_BLOCK_END)
        stack.extend(reversed(node.contents))


def _wrap_line(line: str, width: int) -> str:
    if not line.strip():
        return ""
    return textwrap.fill(
        line.strip(),
        width=width,
        break_long_words=False,
        break_on_hyphens=False,
    )


def clean_whitespace(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _MANY_NEWLINES.sub("\n\n", text)
    text = _INLINE_WHITESPACE.sub(" ", text)
    return text.strip()
