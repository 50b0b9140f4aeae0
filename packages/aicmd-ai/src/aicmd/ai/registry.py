"""Backend registry: maps backend ids to factories and default models."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from aicmd.ai.types import Backend, BackendOptions

BackendFactory = Callable[[BackendOptions], Backend]


@dataclass
class BackendSpec:
    """A registered backend implementation."""

    name: str
    factory: BackendFactory
    default_model: str
    description: str = ""


_registry: dict[str, BackendSpec] = {}


def register_backend(spec: BackendSpec) -> None:
    """Register a backend implementation, replacing one with the same id."""
    _registry[spec.name] = spec


def get_backend(name: str) -> BackendSpec | None:
    """Get a registered backend by id."""
    return _registry.get(name)


def get_backends() -> list[BackendSpec]:
    """Get all registered backends, in registration order."""
    return list(_registry.values())


def get_backend_names() -> list[str]:
    return list(_registry)


def default_model(name: str) -> str | None:
    spec = get_backend(name)
    return spec.default_model if spec else None


def create_backend(name: str, options: BackendOptions) -> Backend:
    """Instantiate backend *name*; raises ``KeyError`` for unknown ids."""
    spec = get_backend(name)
    if spec is None:
        known = ", ".join(get_backend_names()) or "none"
        raise KeyError(f"unknown backend '{name}' (known: {known})")
    return spec.factory(options)


def clear_backends() -> None:
    """Remove all registered backends."""
    _registry.clear()
