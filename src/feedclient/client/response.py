"""Helpers that turn :class:`httpx.Response` objects into plain values.

* :func:`extract_response_data` -- decoded body for callers of the services.
* :func:`error_message` -- human-readable message for an error response.
* :func:`snapshot_response` / :func:`restore_response` -- the cache-friendly
  form of a response stored by the pipeline and the response rebuilt from it
  on a cache hit.
"""

from __future__ import annotations

from typing import Any

import httpx

DEFAULT_ERROR_MESSAGE = "An error occurred"

# Describe the wire encoding, not the decoded bytes we keep.
_HOP_HEADERS = frozenset({"content-encoding", "content-length", "transfer-encoding"})


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Attempts to parse the body as JSON first.  If that fails (e.g. the
    response is HTML or plain text), returns the raw text.  Returns
    ``None`` for responses with no content.

    Args:
        response: The :class:`httpx.Response` to extract data from.

    Returns:
        A JSON-decoded object (``dict``, ``list``, etc.), a ``str`` of raw
        text, or ``None`` if the body is empty.
    """
    if not response.content:
        return None

    try:
        return response.json()
    except ValueError:
        pass

    return response.text


def error_message(response: httpx.Response) -> str:
    """Pick the server-provided message out of an error response.

    Looks at the ``message``, ``error`` and ``detail`` fields of a JSON object
    body, in that order. Falls back to :data:`DEFAULT_ERROR_MESSAGE` when the
    body is empty, not JSON, or carries none of them.
    """
    try:
        detail = response.json()
    except ValueError:
        return DEFAULT_ERROR_MESSAGE

    if isinstance(detail, dict):
        for field in ("message", "error", "detail"):
            value = detail.get(field)
            if isinstance(value, str) and value.strip():
                return value
    return DEFAULT_ERROR_MESSAGE


def snapshot_response(response: httpx.Response) -> dict[str, Any]:
    """Serialise a successful response into a ``dict`` for the cache.

    Returns:
        A ``dict`` with ``status_code``, ``headers`` (wire-encoding headers
        dropped) and the decoded ``content`` bytes.
    """
    headers = {
        key: value
        for key, value in response.headers.items()
        if key.lower() not in _HOP_HEADERS
    }
    return {
        "status_code": response.status_code,
        "headers": headers,
        "content": response.content,
    }


def restore_response(snapshot: dict[str, Any], request: httpx.Request) -> httpx.Response:
    """Rebuild an :class:`httpx.Response` from :func:`snapshot_response` output."""
    return httpx.Response(
        status_code=snapshot["status_code"],
        headers=snapshot.get("headers", {}),
        content=snapshot.get("content", b""),
        request=request,
    )
