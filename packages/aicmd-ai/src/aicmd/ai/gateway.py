"""Backend Gateway: one configured backend behind a lazily resolved credential."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from aicmd.ai.credentials import SecretLookup, resolve_credential
from aicmd.ai.providers.builtins import register_builtin_backends
from aicmd.ai.registry import create_backend, default_model, get_backend
from aicmd.ai.types import Backend, BackendOptions, NetworkFailure, PayloadHook, PromptContext

logger = logging.getLogger(__name__)


def _ensure_registered(name: str) -> None:
    if get_backend(name) is None:
        register_builtin_backends()
    if get_backend(name) is None:
        raise KeyError(f"unknown backend '{name}'")


class Gateway:
    """A :class:`Backend` that resolves its credential on first use.

    ``authorize()`` is cheap after the first success, so callers can run
    it on every trigger to fail fast with :class:`AuthMissing` before
    any network I/O.
    """

    def __init__(
        self,
        name: str,
        options: BackendOptions,
        *,
        secret_lookup: SecretLookup | None = None,
    ) -> None:
        _ensure_registered(name)
        self.name = name
        self.options = options
        self._secret_lookup = secret_lookup
        self._backend: Backend | None = None

    @property
    def model(self) -> str:
        return self.options.model

    def authorize(self) -> Backend:
        """Resolve the credential and build the backend; raises ``AuthMissing``."""
        if self._backend is None:
            credential = resolve_credential(self.name, secret_lookup=self._secret_lookup)
            options = replace(self.options, api_key=credential or self.options.api_key)
            self._backend = create_backend(self.name, options)
            logger.debug("backend %s ready (model %s)", self.name, options.model)
        return self._backend

    async def invoke(self, context: PromptContext, text: str) -> str:
        """Run the backend call under a total deadline of ``options.timeout``.

        Client timeouts bound each read separately; this bounds the whole call.
        """
        backend = self.authorize()
        try:
            async with asyncio.timeout(self.options.timeout):
                return await backend.invoke(context, text)
        except TimeoutError as e:
            raise NetworkFailure(f"{self.name} did not answer within {self.options.timeout:g}s") from e


def create_gateway(
    name: str,
    model: str | None = None,
    *,
    base_url: str | None = None,
    timeout: float = 30.0,
    max_tokens: int = 256,
    on_payload: PayloadHook | None = None,
    secret_lookup: SecretLookup | None = None,
) -> Gateway:
    """Build a gateway for backend *name*; an empty *model* selects its default."""
    _ensure_registered(name)
    options = BackendOptions(
        model=model or default_model(name) or "",
        base_url=base_url,
        timeout=timeout,
        max_tokens=max_tokens,
        on_payload=on_payload,
    )
    return Gateway(name, options, secret_lookup=secret_lookup)


async def suggest_command(gateway: Backend, text: str, context: PromptContext | None = None) -> str:
    """One-shot translation of *text* using the caller's current environment."""
    return await gateway.invoke(context or PromptContext.current(), text)
