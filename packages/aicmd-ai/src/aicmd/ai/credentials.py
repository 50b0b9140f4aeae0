"""Credential resolution for backends: environment first, then the OS secret store."""

from __future__ import annotations

import getpass
import os
import shutil
import subprocess
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from aicmd.ai.types import AuthMissing

SecretLookup = Callable[[str, str], str | None]


@dataclass(frozen=True)
class CredentialSource:
    """Where a backend's credential comes from and how to tell the user to set it."""

    env_vars: tuple[str, ...] = ()
    service: str | None = None
    executable: str | None = None
    optional: bool = False
    hint: str = ""


CREDENTIAL_SOURCES: dict[str, CredentialSource] = {
    "anthropic": CredentialSource(
        env_vars=("ANTHROPIC_API_KEY",),
        service="anthropic-api-key",
    ),
    "openai": CredentialSource(
        env_vars=("OPENAI_API_KEY",),
        service="openai-api-key",
    ),
    "deepseek": CredentialSource(
        env_vars=("DEEPSEEK_API_KEY",),
        service="deepseek-api-key",
    ),
    "gemini": CredentialSource(
        env_vars=("GEMINI_API_KEY", "GOOGLE_API_KEY"),
        service="gemini-api-key",
    ),
    "ollama": CredentialSource(
        env_vars=("OLLAMA_API_KEY",),
        optional=True,
    ),
    "claude-code": CredentialSource(
        executable="claude",
        hint="install it with 'npm install -g @anthropic-ai/claude-code', then run 'claude login'",
    ),
}


def lookup_secret(service: str, account: str) -> str | None:
    """Read a generic password from the platform secret store.

    macOS uses the login Keychain via ``security``; elsewhere the Secret
    Service via ``secret-tool`` when it is installed. Returns ``None`` when
    the store is unavailable or has no entry.
    """
    if sys.platform == "darwin":
        cmd = ["security", "find-generic-password", "-s", service, "-a", account, "-w"]
    elif shutil.which("secret-tool"):
        cmd = ["secret-tool", "lookup", "service", service, "account", account]
    else:
        return None

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=5)
    except (OSError, subprocess.TimeoutExpired):
        return None

    if result.returncode != 0:
        return None
    secret = result.stdout.strip()
    return secret or None


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return os.environ.get("USER", "")


def missing_message(backend: str) -> str:
    """One-line, actionable explanation of how to supply the credential."""
    source = CREDENTIAL_SOURCES.get(backend)
    if source is None:
        return f"aicmd: unknown backend '{backend}'"
    if source.executable:
        return f"aicmd: '{source.executable}' not found or not authenticated ({source.hint})"

    env_var = source.env_vars[0]
    message = f"aicmd: {env_var} not found (export {env_var}=..."
    if source.service:
        store = "macOS Keychain" if sys.platform == "darwin" else "secret store"
        message += f" or store it in the {store} as '{source.service}'"
    return message + ")"


def resolve_credential(
    backend: str,
    env: Mapping[str, str] | None = None,
    secret_lookup: SecretLookup | None = None,
) -> str:
    """Return the credential for *backend* or raise :class:`AuthMissing`.

    Optional credentials resolve to ``""`` when unset. For process
    backends the "credential" is the resolved executable path.
    """
    source = CREDENTIAL_SOURCES.get(backend)
    if source is None:
        raise AuthMissing(missing_message(backend))

    environ = os.environ if env is None else env

    if source.executable:
        path = shutil.which(source.executable)
        if not path:
            raise AuthMissing(missing_message(backend))
        return path

    for var in source.env_vars:
        value = environ.get(var)
        if value:
            return value

    if source.service:
        lookup = secret_lookup or lookup_secret
        secret = lookup(source.service, environ.get("USER") or _current_user())
        if secret:
            return secret

    if source.optional:
        return ""
    raise AuthMissing(missing_message(backend))
