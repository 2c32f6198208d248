"""Startup check that the libraries behind each capability are importable."""

from __future__ import annotations

import importlib.util
from dataclasses import dataclass, field

CAPABILITY_MODULES: dict[str, tuple[str, ...]] = {
    "auth": ("msal", "azure.core"),
    "directory": ("httpx",),
    "storage": ("azure.storage.filedatalake",),
    "logging": ("structlog",),
    "settings": ("pydantic", "pydantic_settings"),
}

DEFAULT_CAPABILITIES: tuple[str, ...] = tuple(CAPABILITY_MODULES)


@dataclass(frozen=True)
class MissingCapability:
    capability: str
    modules: tuple[str, ...]


@dataclass(frozen=True)
class DependencyReport:
    missing: tuple[MissingCapability, ...] = field(default_factory=tuple)

    @property
    def ready(self) -> bool:
        return not self.missing


def _importable(module: str) -> bool:
    try:
        return importlib.util.find_spec(module) is not None
    except ModuleNotFoundError:
        # find_spec imports parent packages; a missing parent lands here
        return False


def ensure_dependencies(
    required: tuple[str, ...] | list[str] = DEFAULT_CAPABILITIES,
) -> DependencyReport:
    """Report which of the ``required`` capabilities cannot be loaded.

    Raises:
        ValueError: a capability name is not known.
    """
    unknown = [name for name in required if name not in CAPABILITY_MODULES]
    if unknown:
        raise ValueError(f"Unknown capabilities: {', '.join(unknown)}")

    missing = []
    for name in required:
        absent = tuple(module for module in CAPABILITY_MODULES[name] if not _importable(module))
        if absent:
            missing.append(MissingCapability(capability=name, modules=absent))
    return DependencyReport(missing=tuple(missing))
