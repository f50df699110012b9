"""Gemini image-editing capability."""

from __future__ import annotations

import os
from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..errors import CapabilityError
from .base import CapabilityRequest

DEFAULT_MODEL = "gemini-2.5-flash-image-preview"


class GeminiCapability:
    name = "gemini"

    def __init__(self, model: str | None = None, api_key: str | None = None) -> None:
        self.model = model or DEFAULT_MODEL
        self._api_key = api_key
        self._client: genai.Client | None = None

    def _resolve_client(self) -> genai.Client:
        if self._client is not None:
            return self._client
        api_key = self._api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        if not api_key:
            raise CapabilityError("GEMINI_API_KEY or GOOGLE_API_KEY not set.")
        self._client = genai.Client(api_key=api_key)
        return self._client

    async def generate(self, request: CapabilityRequest) -> Any:
        client = self._resolve_client()
        try:
            return await client.aio.models.generate_content(
                model=self.model,
                contents=build_message_parts(request),
                config=build_content_config(),
            )
        except genai_errors.APIError as exc:
            raise CapabilityError(
                f"Gemini API error ({exc.code}): {exc.message}",
                code=exc.code,
                body=exc.details,
            ) from exc


def build_content_config() -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        response_modalities=["IMAGE", "TEXT"],
    )


def build_message_parts(request: CapabilityRequest) -> list[types.Part]:
    return [
        types.Part(
            inline_data=types.Blob(
                data=request.image_bytes,
                mime_type=request.media_type,
            )
        ),
        types.Part(text=request.instruction),
    ]
