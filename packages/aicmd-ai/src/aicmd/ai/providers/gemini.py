"""Gemini backend over the Generative Language REST API (raw httpx, no SDK)."""

from __future__ import annotations

from typing import Any

import httpx

from aicmd.ai.parse import clean_command
from aicmd.ai.prompt import build_system_prompt
from aicmd.ai.providers.http import post_json
from aicmd.ai.types import (
    BackendOptions,
    EmptyResult,
    PromptContext,
    ProtocolError,
    ProviderError,
    require_text,
)

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

# Gemini's OpenAPI-subset schema dialect
_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {"command": {"type": "STRING"}},
    "required": ["command"],
}


def _extract_text(data: Any) -> str:
    if not isinstance(data, dict):
        raise ProtocolError("unexpected response shape")

    candidates = data.get("candidates")
    if not candidates:
        feedback = data.get("promptFeedback") or {}
        if feedback.get("blockReason"):
            raise ProviderError(f"request blocked: {feedback['blockReason']}")
        raise EmptyResult("response contained no candidates")

    candidate = candidates[0]
    parts = (candidate.get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
    if not text and candidate.get("finishReason") not in (None, "STOP"):
        raise ProviderError(f"generation stopped: {candidate['finishReason']}")
    return text


class GeminiBackend:
    name = "gemini"

    def __init__(self, options: BackendOptions, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.options = options
        self._transport = transport

    async def invoke(self, context: PromptContext, text: str) -> str:
        require_text(text)
        base_url = (self.options.base_url or DEFAULT_GEMINI_BASE_URL).rstrip("/")
        payload: dict[str, Any] = {
            "systemInstruction": {"parts": [{"text": build_system_prompt(context)}]},
            "contents": [{"role": "user", "parts": [{"text": text}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": _RESPONSE_SCHEMA,
                "maxOutputTokens": self.options.max_tokens,
                "temperature": 0,
            },
        }

        data = await post_json(
            f"{base_url}/models/{self.options.model}:generateContent",
            payload,
            headers={"x-goog-api-key": self.options.api_key or ""},
            timeout=self.options.timeout,
            transport=self._transport,
        )
        self.options.report(self.name, payload, data)
        return clean_command(_extract_text(data))
