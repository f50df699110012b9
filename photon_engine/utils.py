"""Shared utilities for the Photon engine."""

from __future__ import annotations

import os
import re
import time
from datetime import datetime, timezone
from pathlib import Path
import tomllib
from typing import Any, Mapping


_UNSAFE_NAME_RE = re.compile(r"[^a-z0-9.]", re.IGNORECASE)


def now_utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def sanitize_filename(name: str) -> str:
    return _UNSAFE_NAME_RE.sub("_", name).lower()


def sanitize_payload(payload: Any) -> Any:
    if payload is None:
        return None
    if isinstance(payload, (str, int, float, bool)):
        return payload
    if isinstance(payload, (bytes, bytearray)):
        return f"<bytes:{len(payload)}>"
    if isinstance(payload, Path):
        return str(payload)
    if isinstance(payload, Mapping):
        sanitized: dict[str, Any] = {}
        for key, value in payload.items():
            lowered = str(key).lower()
            if lowered in {"payload", "image", "image_bytes", "data", "inline_data", "inlinedata"}:
                sanitized[str(key)] = "<omitted>"
                continue
            sanitized[str(key)] = sanitize_payload(value)
        return sanitized
    if isinstance(payload, (list, tuple)):
        return [sanitize_payload(item) for item in payload]
    return str(payload)


def getenv_flag(key: str, default: bool = False) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def getenv_int(key: str, default: int) -> int:
    raw = str(os.getenv(key) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def getenv_float(key: str, default: float) -> float:
    raw = str(os.getenv(key) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def load_dotenv(path: Path | None = None, override: bool = False) -> bool:
    """Copy ``KEY=value`` pairs from a ``.env`` file into ``os.environ``.

    Variables already set in the environment win unless ``override`` is set.
    """
    env_path = path or find_env_file()
    if env_path is None or not env_path.is_file():
        return False
    lines = env_path.read_text(encoding="utf-8").splitlines()
    for key, value in filter(None, map(_parse_env_line, lines)):
        if override or key not in os.environ:
            os.environ[key] = value
    return True


def find_env_file(start: Path | None = None) -> Path | None:
    """Nearest ``.env`` walking up from ``start``, stopping at the project root."""
    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        candidate = directory / ".env"
        if candidate.is_file():
            return candidate
        if _is_project_root(directory):
            break
    return None


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#"):
        return None
    line = line.removeprefix("export ").strip()
    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key:
        return None
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1]
    return key, value


def _is_project_root(directory: Path) -> bool:
    pyproject = directory / "pyproject.toml"
    if not pyproject.is_file():
        return False
    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return data.get("project", {}).get("name") == "photon-engine"
