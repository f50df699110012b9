"""Edit request transport.

Packages the current canonical image and an instruction into a capability
request, awaits a single response, and turns it into an ``EditResult``. No
retries and no queuing happen here; the caller serializes requests.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from .errors import (
    EmptyResponseError,
    NoImageReturnedError,
    PhotonError,
    QuotaExceededError,
    RefusedEditError,
    TransportError,
)
from .events import EventWriter, emit_event
from .images.codec import EncodedImage, decode, encode
from .providers.base import CapabilityRequest, GenerationCapability
from .utils import monotonic_ms

QUOTA_EXCEEDED_CODE = 429


@dataclass(frozen=True)
class EditRequest:
    source_image: EncodedImage
    instruction: str


@dataclass(frozen=True)
class EditResult:
    result_image: EncodedImage
    commentary: str = ""


class EditTransport:
    def __init__(self, capability: GenerationCapability, events: EventWriter | None = None) -> None:
        self.capability = capability
        self.events = events

    async def request_edit(self, image: EncodedImage, instruction: str) -> EditResult:
        request = EditRequest(source_image=image, instruction=instruction)
        capability_request = build_capability_request(request)
        started = monotonic_ms()
        try:
            response = await self.capability.generate(capability_request)
        except PhotonError:
            raise
        except Exception as exc:
            error = classify_transport_error(exc)
            emit_event(
                self.events,
                "transport_error",
                capability=self.capability.name,
                error_type=type(error).__name__,
                detail=error.detail,
                elapsed_ms=monotonic_ms() - started,
            )
            raise error from exc
        return parse_edit_response(response, default_media_type=capability_request.media_type)


def build_capability_request(request: EditRequest) -> CapabilityRequest:
    raw, media_type = decode(request.source_image)
    return CapabilityRequest(image_bytes=raw, media_type=media_type, instruction=request.instruction)


def parse_edit_response(response: Any, *, default_media_type: str) -> EditResult:
    candidates = _field(response, "candidates") or []
    first = candidates[0] if isinstance(candidates, Sequence) and candidates else None
    content = _field(first, "content") if first is not None else None
    parts = _field(content, "parts") if content is not None else None
    if parts is None:
        raise EmptyResponseError("No valid candidates returned from the API.")

    image_bytes: bytes | None = None
    media_type = default_media_type
    commentary = ""
    for part in parts:
        inline_data = _field(part, "inline_data", "inlineData")
        data = _field(inline_data, "data") if inline_data is not None else None
        if data:
            image_bytes = _coerce_image_bytes(data)
            media_type = _field(inline_data, "mime_type", "mimeType") or default_media_type
            continue
        text = _field(part, "text")
        if text:
            commentary += str(text)

    if image_bytes is None:
        if commentary:
            raise RefusedEditError(commentary)
        raise NoImageReturnedError("The AI did not return an image. Please try a different prompt.")
    return EditResult(result_image=encode(image_bytes, media_type), commentary=commentary)


def classify_transport_error(exc: BaseException) -> TransportError:
    detail = f"{type(exc).__name__}: {exc}"
    try:
        code = _extract_error_code(exc)
    except Exception:
        code = None
    if code == QUOTA_EXCEEDED_CODE:
        return QuotaExceededError("Quota exceeded.", detail=detail)
    return TransportError("Edit request failed.", detail=detail)


def _extract_error_code(exc: BaseException) -> int | None:
    body = getattr(exc, "body", None)
    if body is None:
        body = getattr(exc, "details", None)
    if body is None:
        code = getattr(exc, "code", None)
        if code is not None:
            return int(code)
        body = str(exc)
    if isinstance(body, (str, bytes, bytearray)):
        body = json.loads(body)
    error = body.get("error") if isinstance(body, Mapping) else None
    if isinstance(error, Mapping) and error.get("code") is not None:
        return int(error["code"])
    return None


def _coerce_image_bytes(data: Any) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    try:
        return base64.b64decode(str(data), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise NoImageReturnedError("The AI returned an unreadable image.") from exc


def _field(value: Any, *names: str) -> Any:
    for name in names:
        if isinstance(value, Mapping):
            found = value.get(name)
        else:
            found = getattr(value, name, None)
        if found is not None:
            return found
    return None
