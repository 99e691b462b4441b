from __future__ import annotations

from models.mime_part import Leaf, Multipart, parse_payload


def test_leaf_payload_keeps_inline_body():
    part = parse_payload({"mimeType": "text/plain", "body": {"size": 5, "data": "SGVsbG8"}})
    assert part == Leaf("text/plain", "SGVsbG8")


def test_multipart_payload_preserves_child_order():
    payload = {
        "mimeType": "multipart/alternative",
        "body": {"size": 0},
        "parts": [
            {"partId": "0", "mimeType": "text/html", "body": {"data": "PGI-"}},
            {"partId": "1", "mimeType": "text/plain", "body": {"data": "YQ"}},
        ],
    }
    part = parse_payload(payload)
    assert isinstance(part, Multipart)
    assert [child.media_type for child in part.children] == ["text/html", "text/plain"]


def test_missing_fields_degrade_to_empty_leaf():
    assert parse_payload({}) == Leaf("", None)
    assert parse_payload({"mimeType": "text/plain", "body": {"size": 0}, "parts": []}) == Leaf("text/plain", None)


def test_nested_parts_are_parsed_recursively():
    payload = {
        "mimeType": "multipart/mixed",
        "parts": [
            {
                "mimeType": "multipart/alternative",
                "parts": [{"mimeType": "text/plain", "body": {"data": "eA"}}],
            },
            {"mimeType": "application/pdf", "filename": "a.pdf", "body": {"attachmentId": "att"}},
        ],
    }
    part = parse_payload(payload)
    nested = part.children[0]
    assert isinstance(nested, Multipart)
    assert nested.children == (Leaf("text/plain", "eA"),)
    assert part.children[1] == Leaf("application/pdf", None)
