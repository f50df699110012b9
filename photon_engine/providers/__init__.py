"""Capability registry."""

from __future__ import annotations

from .base import ProviderRegistry
from .dryrun import DryRunCapability
from .gemini import GeminiCapability


def default_registry(model: str | None = None) -> ProviderRegistry:
    return ProviderRegistry(
        [
            DryRunCapability(),
            GeminiCapability(model=model),
        ]
    )
