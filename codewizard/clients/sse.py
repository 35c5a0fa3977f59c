"""Decoder for JSON-RPC envelopes delivered as server-sent events."""

import json
from typing import Any

from codewizard.errors import EnvelopeDecodeError

DATA_PREFIX = "data:"


def first_data_line(body: str) -> str | None:
    """Return the payload of the first ``data:`` line, or None.

    A single space after the field name is part of the framing, not the payload.
    Lines break on LF only, with a trailing CR dropped; payloads may carry
    other Unicode line separators inside JSON strings.
    """
    for line in body.split("\n"):
        line = line.removesuffix("\r")
        if not line.startswith(DATA_PREFIX):
            continue
        payload = line[len(DATA_PREFIX) :]
        if payload.startswith(" "):
            payload = payload[1:]
        return payload
    return None


def decode_sse_envelope(body: str) -> dict[str, Any]:
    """Locate and parse the JSON-RPC envelope in an SSE body.

    Raises:
        EnvelopeDecodeError: No data line, invalid JSON, or a non-object payload
    """
    payload = first_data_line(body)
    if not payload:
        raise EnvelopeDecodeError("No data found in SSE response")

    try:
        envelope = json.loads(payload)
    except json.JSONDecodeError as e:
        raise EnvelopeDecodeError(f"Invalid JSON in SSE data line: {e.msg}") from e

    if not isinstance(envelope, dict):
        raise EnvelopeDecodeError("SSE data line is not a JSON-RPC envelope")
    return envelope


def envelope_error_message(envelope: dict[str, Any]) -> str | None:
    """Error message carried by the envelope, if any."""
    error = envelope.get("error")
    if not error:
        return None
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)
