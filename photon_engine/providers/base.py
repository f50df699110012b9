"""Generation capability base classes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Protocol


@dataclass(frozen=True)
class CapabilityRequest:
    image_bytes: bytes
    media_type: str
    instruction: str


class GenerationCapability(Protocol):
    name: str

    async def generate(self, request: CapabilityRequest) -> Any:
        """Return the raw response: an SDK object or a JSON-shaped mapping."""
        ...


class ProviderRegistry:
    def __init__(self, providers: Iterable[GenerationCapability]) -> None:
        self._providers = {provider.name: provider for provider in providers}

    def get(self, name: str) -> GenerationCapability | None:
        return self._providers.get(name)

    def list(self) -> list[str]:
        return sorted(self._providers.keys())
