"""Binary/text codec for images carried through history and over the wire."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

from ..errors import FormatError


_MEDIA_TYPE_RE = re.compile(r":(.*?);")

_SUFFIX_MEDIA_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
}

_MEDIA_TYPE_SUFFIXES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


@dataclass(frozen=True)
class EncodedImage:
    media_type: str
    payload: str

    def to_transport(self) -> str:
        return to_transport_encoding(self)


def encode(raw_bytes: bytes, media_type: str) -> EncodedImage:
    payload = base64.b64encode(bytes(raw_bytes)).decode("ascii")
    return EncodedImage(media_type=media_type, payload=payload)


def decode(image: EncodedImage) -> tuple[bytes, str]:
    try:
        raw = base64.b64decode(image.payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise FormatError("Image payload is not valid base64.") from exc
    return raw, image.media_type


def parse_transport_encoding(text: str) -> EncodedImage:
    """Parse ``<scheme>:<media type>;<encoding>,<payload>`` into an image.

    Only the structure is checked here; the payload is validated when it is
    decoded.
    """
    parts = text.split(",")
    if len(parts) != 2:
        raise FormatError("Invalid data URL format")
    header, payload = parts
    match = _MEDIA_TYPE_RE.search(header)
    if not match or not match.group(1):
        raise FormatError("Could not extract MIME type from data URL")
    return EncodedImage(media_type=match.group(1), payload=payload)


def to_transport_encoding(image: EncodedImage) -> str:
    return f"data:{image.media_type};base64,{image.payload}"


def sniff_media_type(raw_bytes: bytes) -> str | None:
    head = bytes(raw_bytes[:16])
    if head.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if head.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "image/webp"
    if head.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    return None


def media_type_for_suffix(suffix: str) -> str | None:
    lowered = str(suffix or "").strip().lower()
    if lowered and not lowered.startswith("."):
        lowered = f".{lowered}"
    return _SUFFIX_MEDIA_TYPES.get(lowered)


def suffix_for_media_type(media_type: str | None) -> str:
    lowered = str(media_type or "").split(";", 1)[0].strip().lower()
    return _MEDIA_TYPE_SUFFIXES.get(lowered, ".png")
