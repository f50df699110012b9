"""Dry-run capability (offline)."""

from __future__ import annotations

import base64
from io import BytesIO
from typing import Any

from PIL import Image, ImageOps

from ..errors import CapabilityError
from .base import CapabilityRequest


class DryRunCapability:
    """Answers every instruction by inverting the image, without a network call."""

    name = "dryrun"

    def __init__(self) -> None:
        self.requests: list[CapabilityRequest] = []

    async def generate(self, request: CapabilityRequest) -> dict[str, Any]:
        self.requests.append(request)
        try:
            image = Image.open(BytesIO(request.image_bytes))
            image.load()
        except OSError as exc:
            raise CapabilityError(
                "dryrun could not read the input image",
                code=400,
                body={"error": {"code": 400, "message": str(exc), "status": "INVALID_ARGUMENT"}},
            ) from exc
        edited = ImageOps.invert(image.convert("RGB"))
        buffer = BytesIO()
        edited.save(buffer, format="PNG")
        return {
            "candidates": [
                {
                    "content": {
                        "parts": [
                            {"text": f"dryrun: {request.instruction[:60]}"},
                            {
                                "inlineData": {
                                    "mimeType": "image/png",
                                    "data": base64.b64encode(buffer.getvalue()).decode("ascii"),
                                }
                            },
                        ]
                    }
                }
            ]
        }
