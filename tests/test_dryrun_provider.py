from __future__ import annotations

import asyncio
from io import BytesIO

import pytest
from PIL import Image

from photon_engine.errors import TransportError
from photon_engine.images.codec import decode, encode
from photon_engine.providers.base import CapabilityRequest
from photon_engine.providers.dryrun import DryRunCapability
from photon_engine.transport import EditTransport, parse_edit_response


def _png_bytes(color=(10, 20, 30)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (8, 8), color).save(buffer, format="PNG")
    return buffer.getvalue()


def test_dryrun_inverts_image_and_explains() -> None:
    capability = DryRunCapability()
    request = CapabilityRequest(image_bytes=_png_bytes(), media_type="image/png", instruction="invert it")

    response = asyncio.run(capability.generate(request))
    result = parse_edit_response(response, default_media_type="image/png")

    raw, media_type = decode(result.result_image)
    assert media_type == "image/png"
    assert Image.open(BytesIO(raw)).getpixel((0, 0)) == (245, 235, 225)
    assert result.commentary == "dryrun: invert it"
    assert capability.requests == [request]


def test_dryrun_unreadable_image_surfaces_as_transport_error() -> None:
    transport = EditTransport(DryRunCapability())
    with pytest.raises(TransportError):
        asyncio.run(transport.request_edit(encode(b"garbage", "image/png"), "anything"))
