"""Ollama backend: local models over the ``/api/chat`` endpoint."""

from __future__ import annotations

import os
from typing import Any

import httpx

from aicmd.ai.parse import clean_command
from aicmd.ai.prompt import COMMAND_SCHEMA, build_system_prompt
from aicmd.ai.providers.http import post_json
from aicmd.ai.types import BackendOptions, PromptContext, ProtocolError, ProviderError, require_text

DEFAULT_OLLAMA_HOST = "http://localhost:11434"


class OllamaBackend:
    name = "ollama"

    def __init__(self, options: BackendOptions, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.options = options
        self._transport = transport

    @property
    def base_url(self) -> str:
        host = self.options.base_url or os.environ.get("OLLAMA_HOST") or DEFAULT_OLLAMA_HOST
        if not host.startswith(("http://", "https://")):
            host = f"http://{host}"
        return host.rstrip("/")

    async def invoke(self, context: PromptContext, text: str) -> str:
        require_text(text)
        payload: dict[str, Any] = {
            "model": self.options.model,
            "stream": False,
            "format": COMMAND_SCHEMA,
            "messages": [
                {"role": "system", "content": build_system_prompt(context)},
                {"role": "user", "content": text},
            ],
            "options": {"num_predict": self.options.max_tokens, "temperature": 0},
        }
        headers = {"Authorization": f"Bearer {self.options.api_key}"} if self.options.api_key else None

        data = await post_json(
            f"{self.base_url}/api/chat",
            payload,
            headers=headers,
            timeout=self.options.timeout,
            transport=self._transport,
        )
        self.options.report(self.name, payload, data)

        if not isinstance(data, dict):
            raise ProtocolError("unexpected response shape")
        if data.get("error"):
            raise ProviderError(str(data["error"]))
        message = data.get("message")
        if not isinstance(message, dict) or "content" not in message:
            raise ProtocolError("response has no message content")
        return clean_command(message["content"])
