from __future__ import annotations

import asyncio
import base64
import json
from pathlib import Path
from types import SimpleNamespace

import pytest

from photon_engine.errors import (
    CapabilityError,
    EmptyResponseError,
    NoImageReturnedError,
    QuotaExceededError,
    RefusedEditError,
    TransportError,
)
from photon_engine.events import EventWriter
from photon_engine.images.codec import decode, encode
from photon_engine.transport import (
    EditRequest,
    EditTransport,
    build_capability_request,
    classify_transport_error,
    parse_edit_response,
)


class _FakeCapability:
    name = "fake"

    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _response(*parts) -> dict:
    return {"candidates": [{"content": {"parts": list(parts)}}]}


def _run(transport: EditTransport, instruction: str = "add a hat"):
    return asyncio.run(transport.request_edit(encode(b"source-png", "image/png"), instruction))


def test_build_capability_request_decodes_source_image() -> None:
    request = build_capability_request(EditRequest(encode(b"\x89PNG", "image/png"), "make it blue"))
    assert request.image_bytes == b"\x89PNG"
    assert request.media_type == "image/png"
    assert request.instruction == "make it blue"


def test_request_edit_sends_decoded_image_and_instruction() -> None:
    capability = _FakeCapability(_response({"inlineData": {"mimeType": "image/png", "data": _b64(b"out")}}))
    result = _run(EditTransport(capability), "remove the lamp")

    assert len(capability.requests) == 1
    assert capability.requests[0].image_bytes == b"source-png"
    assert capability.requests[0].instruction == "remove the lamp"
    assert decode(result.result_image) == (b"out", "image/png")
    assert result.commentary == ""


def test_last_image_wins_and_text_is_accumulated_in_order() -> None:
    response = _response(
        {"text": "Here is "},
        {"inlineData": {"mimeType": "image/png", "data": _b64(b"first")}},
        {"text": "your edit."},
        {"inlineData": {"mimeType": "image/jpeg", "data": _b64(b"second")}},
    )
    result = parse_edit_response(response, default_media_type="image/png")

    assert decode(result.result_image) == (b"second", "image/jpeg")
    assert result.commentary == "Here is your edit."


def test_missing_response_media_type_defaults_to_request_media_type() -> None:
    response = _response({"inlineData": {"data": _b64(b"out")}})
    result = parse_edit_response(response, default_media_type="image/webp")
    assert result.result_image.media_type == "image/webp"


def test_parses_sdk_shaped_objects_with_raw_bytes() -> None:
    part_image = SimpleNamespace(inline_data=SimpleNamespace(data=b"raw-out", mime_type="image/png"), text=None)
    part_text = SimpleNamespace(inline_data=None, text="Done.")
    response = SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part_text, part_image]))]
    )
    result = parse_edit_response(response, default_media_type="image/jpeg")
    assert decode(result.result_image) == (b"raw-out", "image/png")
    assert result.commentary == "Done."


def test_text_only_response_is_a_refusal_with_verbatim_commentary() -> None:
    text = "I can't add that to a photo of a person."
    with pytest.raises(RefusedEditError) as excinfo:
        _run(EditTransport(_FakeCapability(_response({"text": text}))))
    assert excinfo.value.commentary == text


@pytest.mark.parametrize(
    "response",
    [
        {},
        {"candidates": []},
        {"candidates": [{"finishReason": "SAFETY"}]},
        None,
    ],
)
def test_missing_candidate_content_is_empty_response(response) -> None:
    with pytest.raises(EmptyResponseError):
        parse_edit_response(response, default_media_type="image/png")


def test_parts_without_text_or_image_mean_no_image_returned() -> None:
    with pytest.raises(NoImageReturnedError):
        parse_edit_response(_response({"text": ""}, {"inlineData": {"mimeType": "image/png"}}), default_media_type="image/png")


def test_quota_error_body_maps_to_quota_exceeded() -> None:
    error = CapabilityError("rate limited", body={"error": {"code": 429, "status": "RESOURCE_EXHAUSTED"}})
    with pytest.raises(QuotaExceededError):
        _run(EditTransport(_FakeCapability(error=error)))


def test_quota_error_json_text_maps_to_quota_exceeded() -> None:
    error = RuntimeError(json.dumps({"error": {"code": 429, "message": "Resource exhausted"}}))
    assert isinstance(classify_transport_error(error), QuotaExceededError)


def test_quota_error_code_attribute_without_body() -> None:
    assert isinstance(classify_transport_error(CapabilityError("slow down", code=429)), QuotaExceededError)


@pytest.mark.parametrize(
    "error",
    [
        CapabilityError("server error", body={"error": {"code": 500}}),
        CapabilityError("bad gateway", body="<html>502</html>"),
        CapabilityError("no key"),
        RuntimeError("socket closed"),
    ],
)
def test_other_failures_map_to_generic_transport_error(error: Exception) -> None:
    classified = classify_transport_error(error)
    assert type(classified) is TransportError


def test_transport_error_keeps_detail_out_of_message_and_logs_it(tmp_path: Path) -> None:
    events_path = tmp_path / "events.jsonl"
    transport = EditTransport(
        _FakeCapability(error=RuntimeError("internal stack detail")),
        events=EventWriter(events_path, "session-1"),
    )

    with pytest.raises(TransportError) as excinfo:
        _run(transport)

    assert "internal stack detail" not in str(excinfo.value)
    assert "internal stack detail" in str(excinfo.value.detail)
    events = [json.loads(line) for line in events_path.read_text(encoding="utf-8").splitlines()]
    assert events[-1]["type"] == "transport_error"
    assert events[-1]["error_type"] == "TransportError"
    assert events[-1]["capability"] == "fake"


def test_empty_parts_list_means_no_image_returned() -> None:
    with pytest.raises(NoImageReturnedError):
        parse_edit_response({"candidates": [{"content": {"parts": []}}]}, default_media_type="image/png")
