"""Register all built-in backends."""

from __future__ import annotations

from aicmd.ai.providers.anthropic import AnthropicBackend
from aicmd.ai.providers.gemini import GeminiBackend
from aicmd.ai.providers.local_assistant import LocalAssistantBackend
from aicmd.ai.providers.ollama import OllamaBackend
from aicmd.ai.providers.openai_compat import DeepSeekBackend, OpenAIBackend
from aicmd.ai.registry import BackendSpec, register_backend


def register_builtin_backends() -> None:
    """Register every backend aicmd ships with."""
    # Hosted APIs
    register_backend(
        BackendSpec(
            name="anthropic",
            factory=AnthropicBackend,
            default_model="claude-haiku-4-5-20251001",
            description="Anthropic Messages API",
        )
    )
    register_backend(
        BackendSpec(
            name="openai",
            factory=OpenAIBackend,
            default_model="gpt-4o-mini",
            description="OpenAI Chat Completions",
        )
    )
    register_backend(
        BackendSpec(
            name="deepseek",
            factory=DeepSeekBackend,
            default_model="deepseek-chat",
            description="DeepSeek (OpenAI-compatible)",
        )
    )
    register_backend(
        BackendSpec(
            name="gemini",
            factory=GeminiBackend,
            default_model="gemini-2.0-flash",
            description="Google Gemini API",
        )
    )

    # Local
    register_backend(
        BackendSpec(
            name="ollama",
            factory=OllamaBackend,
            default_model="qwen2.5-coder:7b",
            description="Ollama server (OLLAMA_HOST)",
        )
    )
    register_backend(
        BackendSpec(
            name="claude-code",
            factory=LocalAssistantBackend,
            default_model="haiku",
            description="claude CLI in pipe mode",
        )
    )
