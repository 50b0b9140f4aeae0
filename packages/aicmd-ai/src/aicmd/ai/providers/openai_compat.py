"""OpenAI Chat Completions backends: OpenAI itself and DeepSeek.

DeepSeek speaks the same protocol at a different base URL but only
supports plain JSON mode, not JSON-schema structured output.
"""

from __future__ import annotations

from typing import Any

import openai

from aicmd.ai.parse import clean_command
from aicmd.ai.prompt import COMMAND_SCHEMA, build_system_prompt
from aicmd.ai.types import (
    BackendOptions,
    EmptyResult,
    NetworkFailure,
    PromptContext,
    ProtocolError,
    ProviderError,
    require_text,
)

DEEPSEEK_BASE_URL = "https://api.deepseek.com"


class OpenAICompatibleBackend:
    """Shared Chat Completions implementation."""

    name = "openai"
    default_base_url: str | None = None
    supports_json_schema = True

    def __init__(self, options: BackendOptions) -> None:
        self.options = options

    def _response_format(self) -> dict[str, Any]:
        if self.supports_json_schema:
            return {
                "type": "json_schema",
                "json_schema": {"name": "shell_command", "strict": True, "schema": COMMAND_SCHEMA},
            }
        return {"type": "json_object"}

    def _build_params(self, context: PromptContext, text: str) -> dict[str, Any]:
        return {
            "model": self.options.model,
            "max_tokens": self.options.max_tokens,
            "messages": [
                {"role": "system", "content": build_system_prompt(context)},
                {"role": "user", "content": text},
            ],
            "response_format": self._response_format(),
        }

    async def invoke(self, context: PromptContext, text: str) -> str:
        require_text(text)
        params = self._build_params(context, text)

        client = openai.AsyncOpenAI(
            api_key=self.options.api_key,
            base_url=self.options.base_url or self.default_base_url,
            timeout=self.options.timeout,
            max_retries=0,
        )
        try:
            completion = await client.chat.completions.create(**params)
        except openai.APITimeoutError as e:
            raise NetworkFailure(f"request timed out after {self.options.timeout:g}s") from e
        except openai.APIConnectionError as e:
            raise NetworkFailure(f"connection failed: {e}") from e
        except openai.APIStatusError as e:
            raise ProviderError(e.message) from e
        finally:
            await client.close()

        self.options.report(self.name, params, completion.model_dump(mode="json"))

        if not completion.choices:
            raise ProtocolError("response contained no choices")
        message = completion.choices[0].message
        if getattr(message, "refusal", None):
            raise ProviderError(message.refusal)
        if not message.content:
            raise EmptyResult("response contained no command")
        return clean_command(message.content)


class OpenAIBackend(OpenAICompatibleBackend):
    name = "openai"


class DeepSeekBackend(OpenAICompatibleBackend):
    name = "deepseek"
    default_base_url = DEEPSEEK_BASE_URL
    supports_json_schema = False
