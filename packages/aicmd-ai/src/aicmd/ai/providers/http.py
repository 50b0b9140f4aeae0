"""Raw HTTP helper for backends that talk JSON over httpx (no SDK)."""

from __future__ import annotations

import json
from typing import Any

import httpx

from aicmd.ai.types import NetworkFailure, ProtocolError, ProviderError


def _parse_error_response(text: str, status: int) -> str:
    """Pull a human-readable message out of an error body."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = None

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if data.get("message"):
            return str(data["message"])

    snippet = text.strip()[:200]
    return f"HTTP {status}: {snippet}" if snippet else f"HTTP {status}"


async def post_json(
    url: str,
    payload: dict[str, Any],
    *,
    headers: dict[str, str] | None = None,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:
    """POST *payload* and return the decoded JSON body.

    Transport problems become :class:`NetworkFailure`, HTTP errors become
    :class:`ProviderError`, undecodable bodies :class:`ProtocolError`.
    """
    async with httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport) as client:
        try:
            response = await client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise NetworkFailure(f"request timed out after {timeout:g}s") from e
        except httpx.TransportError as e:
            raise NetworkFailure(f"connection failed: {e}") from e

    if response.status_code >= 400:
        raise ProviderError(_parse_error_response(response.text, response.status_code))

    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ProtocolError("response body is not valid JSON") from e
