"""Anthropic Messages API backend.

The command is requested as a forced tool call whose input schema is the
command schema, so a well-behaved response carries exactly one command.
"""

from __future__ import annotations

from typing import Any

import anthropic

from aicmd.ai.parse import clean_command, command_from_object
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

TOOL_NAME = "shell_command"


def _build_params(options: BackendOptions, context: PromptContext, text: str) -> dict[str, Any]:
    return {
        "model": options.model,
        "max_tokens": options.max_tokens,
        "system": build_system_prompt(context),
        "messages": [{"role": "user", "content": text}],
        "tools": [
            {
                "name": TOOL_NAME,
                "description": "Return the single shell command for the user's request.",
                "input_schema": COMMAND_SCHEMA,
            }
        ],
        "tool_choice": {"type": "tool", "name": TOOL_NAME},
    }


def _extract_command(message: Any) -> str:
    """Find the command in a Messages API response."""
    if message.stop_reason == "refusal":
        raise ProviderError("the model refused to answer")

    text_parts: list[str] = []
    for block in message.content:
        if block.type == "tool_use" and block.name == TOOL_NAME:
            return command_from_object(block.input)
        if block.type == "text":
            text_parts.append(block.text)

    if text_parts:
        return clean_command("\n".join(text_parts))
    raise EmptyResult("response contained no command")


class AnthropicBackend:
    """Backend for ``api.anthropic.com`` (or a compatible ``base_url``)."""

    name = "anthropic"

    def __init__(self, options: BackendOptions) -> None:
        self.options = options

    async def invoke(self, context: PromptContext, text: str) -> str:
        require_text(text)
        params = _build_params(self.options, context, text)

        client = anthropic.AsyncAnthropic(
            api_key=self.options.api_key,
            base_url=self.options.base_url,
            timeout=self.options.timeout,
            max_retries=0,
        )
        try:
            message = await client.messages.create(**params)
        except anthropic.APITimeoutError as e:
            raise NetworkFailure(f"request timed out after {self.options.timeout:g}s") from e
        except anthropic.APIConnectionError as e:
            raise NetworkFailure(f"connection failed: {e}") from e
        except anthropic.APIStatusError as e:
            raise ProviderError(e.message) from e
        finally:
            await client.close()

        self.options.report(self.name, params, message.model_dump(mode="json"))

        try:
            return _extract_command(message)
        except AttributeError as e:
            raise ProtocolError(f"unexpected response shape: {e}") from e
