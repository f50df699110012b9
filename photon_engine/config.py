"""Environment-driven settings and session wiring."""

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass
from pathlib import Path

from .events import EventWriter
from .images.normalize import CANONICAL_EDGE
from .images.sources import DEFAULT_FETCH_TIMEOUT_S, RemoteSource
from .providers import default_registry
from .providers.base import ProviderRegistry
from .providers.gemini import DEFAULT_MODEL
from .session import EditorSession
from .transport import EditTransport
from .utils import getenv_flag, getenv_float, getenv_int, load_dotenv


@dataclass
class PhotonSettings:
    provider: str = "gemini"
    model: str = DEFAULT_MODEL
    canvas_edge: int = CANONICAL_EDGE
    events_path: Path | None = None
    fetch_timeout_s: float = DEFAULT_FETCH_TIMEOUT_S

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "PhotonSettings":
        if dotenv:
            load_dotenv()
        provider = str(os.getenv("PHOTON_PROVIDER") or "").strip().lower() or "gemini"
        if getenv_flag("PHOTON_DRYRUN", False):
            provider = "dryrun"
        events_raw = str(os.getenv("PHOTON_EVENTS_PATH") or "").strip()
        edge = getenv_int("PHOTON_CANVAS_EDGE", CANONICAL_EDGE)
        return cls(
            provider=provider,
            model=str(os.getenv("PHOTON_MODEL") or "").strip() or DEFAULT_MODEL,
            canvas_edge=edge if edge > 0 else CANONICAL_EDGE,
            events_path=Path(events_raw).expanduser() if events_raw else None,
            fetch_timeout_s=getenv_float("PHOTON_FETCH_TIMEOUT_S", DEFAULT_FETCH_TIMEOUT_S),
        )

    def remote_source(self, url: str) -> RemoteSource:
        return RemoteSource(url=url, timeout_s=self.fetch_timeout_s)


def build_session(
    settings: PhotonSettings | None = None,
    provider_registry: ProviderRegistry | None = None,
) -> EditorSession:
    settings = settings or PhotonSettings.from_env()
    registry = provider_registry or default_registry(model=settings.model)
    capability = registry.get(settings.provider)
    if capability is None:
        raise RuntimeError(
            f"No capability available for {settings.provider}. Known: {', '.join(registry.list())}"
        )
    events = EventWriter(settings.events_path, str(uuid.uuid4())) if settings.events_path else None
    transport = EditTransport(capability, events=events)
    return EditorSession(transport, events=events, edge=settings.canvas_edge)
