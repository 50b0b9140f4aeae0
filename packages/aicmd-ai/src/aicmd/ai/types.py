"""Core types for the command-suggestion gateway: context, options, errors."""

from __future__ import annotations

import logging
import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class GatewayError(Exception):
    """Base class for every failure a backend call can end in."""

    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthMissing(GatewayError):
    """No credential could be resolved for the active backend."""

    kind = "auth_missing"


class NetworkFailure(GatewayError):
    """Timeout, refused connection, or a child process that never answered."""

    kind = "network_failure"


class ProtocolError(GatewayError):
    """The response was malformed or did not match the command schema."""

    kind = "protocol_error"


class ProviderError(GatewayError):
    """The backend reported a failure of its own."""

    kind = "provider_error"


class EmptyResult(GatewayError):
    """The backend answered, but with no command."""

    kind = "empty_result"


class UserCancelled(GatewayError):
    """The request was cancelled from the keyboard."""

    kind = "user_cancelled"


# ---------------------------------------------------------------------------
# Prompt context
# ---------------------------------------------------------------------------


def _detect_os() -> str:
    if platform.system() == "Darwin":
        return f"macOS {platform.mac_ver()[0] or 'unknown'}"
    return platform.system() or "Linux"


@dataclass(frozen=True)
class PromptContext:
    """Environment facts sent alongside the user's text. Opaque strings."""

    os_name: str
    shell: str
    cwd: str

    @classmethod
    def current(cls) -> PromptContext:
        """Describe the machine and directory the editor is running in."""
        return cls(
            os_name=_detect_os(),
            shell=Path(os.environ.get("SHELL", "sh")).name,
            cwd=os.getcwd(),
        )


# ---------------------------------------------------------------------------
# Backend options and protocol
# ---------------------------------------------------------------------------

PayloadHook = Callable[[str, Any, Any], None]


@dataclass
class BackendOptions:
    """Options shared by every backend."""

    model: str
    api_key: str | None = None
    base_url: str | None = None
    timeout: float = 30.0
    max_tokens: int = 256
    on_payload: PayloadHook | None = None

    def report(self, backend: str, request: Any, response: Any) -> None:
        """Hand a request/response pair to the payload hook, if any.

        Hook failures are logged and dropped; they never fail the call.
        """
        if self.on_payload is None:
            return
        try:
            self.on_payload(backend, request, response)
        except Exception:
            logger.debug("payload hook failed for %s", backend, exc_info=True)


@runtime_checkable
class Backend(Protocol):
    """Translates natural-language text into one shell command."""

    name: str

    async def invoke(self, context: PromptContext, text: str) -> str:
        """Return one trimmed command string or raise a :class:`GatewayError`."""
        ...


def require_text(text: str) -> str:
    """Reject empty input before any I/O happens."""
    if not text or not text.strip():
        raise ValueError("text must not be empty")
    return text
