"""Session event log.

One JSON object per line, numbered in emit order. Payloads pass through
``sanitize_payload`` so image bytes never reach the file.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .utils import now_utc_iso, sanitize_payload


@dataclass
class EventWriter:
    path: Path
    session_id: str
    _seq: int = field(default=0, repr=False, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, init=False)

    def emit(self, event_type: str, **payload: Any) -> dict[str, Any]:
        with self._lock:
            self._seq += 1
            event = {
                "seq": self._seq,
                "type": event_type,
                "session_id": self.session_id,
                "ts": now_utc_iso(),
                **sanitize_payload(payload),
            }
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(event) + "\n")
        return event


def emit_event(events: EventWriter | None, event_type: str, **payload: Any) -> None:
    if events is not None:
        events.emit(event_type, **payload)


def read_events(path: Path) -> list[dict[str, Any]]:
    if not path.exists():
        return []
    lines = path.read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines if line.strip()]
