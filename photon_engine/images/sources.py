"""Input image sources and byte acquisition.

An input image arrives as a local file, a remote URL, or an already encoded
image. Each variant knows how to produce ``(raw_bytes, media_type)``; callers
go through :func:`acquire`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..errors import ImageSourceError
from .codec import EncodedImage, decode, media_type_for_suffix, parse_transport_encoding, sniff_media_type


DEFAULT_FETCH_TIMEOUT_S = 30.0
FALLBACK_MEDIA_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class FileSource:
    path: Path

    @property
    def name(self) -> str:
        return Path(self.path).name

    def read(self) -> tuple[bytes, str]:
        path = Path(self.path).expanduser()
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise ImageSourceError(f"Could not read image file: {path}") from exc
        media_type = media_type_for_suffix(path.suffix) or sniff_media_type(data) or FALLBACK_MEDIA_TYPE
        return data, media_type


@dataclass(frozen=True)
class RemoteSource:
    url: str
    timeout_s: float = DEFAULT_FETCH_TIMEOUT_S

    @property
    def name(self) -> str:
        tail = self.url.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
        return tail or "image"

    def read(self) -> tuple[bytes, str]:
        req = Request(self.url, method="GET")
        try:
            with urlopen(req, timeout=self.timeout_s) as response:
                data = response.read()
                header = response.headers.get("Content-Type") if response.headers else None
        except HTTPError as exc:
            raise ImageSourceError(f"Image fetch failed ({exc.code}): {self.url}") from exc
        except (URLError, OSError) as exc:
            raise ImageSourceError(f"Image fetch failed: {exc}") from exc
        media_type = _media_type_from_header(header) or sniff_media_type(data) or FALLBACK_MEDIA_TYPE
        return data, media_type


@dataclass(frozen=True)
class EncodedSource:
    image: EncodedImage
    name: str = "image"

    @classmethod
    def from_transport(cls, text: str, name: str = "image") -> "EncodedSource":
        return cls(image=parse_transport_encoding(text), name=name)

    def read(self) -> tuple[bytes, str]:
        return decode(self.image)


RawImageSource = Union[FileSource, RemoteSource, EncodedSource]


def acquire(source: RawImageSource) -> tuple[bytes, str]:
    """Return ``(raw_bytes, media_type)`` for any supported source."""
    return source.read()


def _media_type_from_header(value: str | None) -> str | None:
    if not value:
        return None
    media_type = value.split(";", 1)[0].strip().lower()
    if not media_type.startswith("image/"):
        return None
    return media_type
