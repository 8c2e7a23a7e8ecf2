"""Platform adapter registry with lazy loading.

Usage:
    from src.platforms import get_adapter

    adapter = get_adapter("linkedin", settings.providers["linkedin"])
    jobs = await adapter.search(query)
"""

from __future__ import annotations

import importlib
import inspect
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from src.core.config import ProviderConfig
    from src.platforms.base import PlatformAdapter

__all__ = ["available_platforms", "get_adapter"]

# Lazy registry: maps platform name -> (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "linkedin": ("src.platforms.linkedin.adapter", "LinkedInAdapter"),
    "workday": ("src.platforms.workday.adapter", "WorkdayAdapter"),
    "careerone": ("src.platforms.careerone.adapter", "CareerOneAdapter"),
}


def get_adapter(name: str, config: ProviderConfig, **kwargs: Any) -> PlatformAdapter:
    """Instantiate and return a platform adapter by name.

    Keyword arguments the adapter's constructor does not accept (for example
    ``polling`` for the synchronous platforms) are dropped.

    Raises:
        ValueError: If the platform name is unknown.
    """
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown platform '{name}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    accepted = inspect.signature(cls.__init__).parameters
    options = {k: v for k, v in kwargs.items() if k in accepted}
    return cls(config, **options)  # type: ignore[no-any-return]


def available_platforms() -> list[str]:
    """Return sorted list of registered platform names."""
    return sorted(_REGISTRY)
