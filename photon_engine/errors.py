"""Typed failures raised by the Photon engine.

Components raise these and let them propagate; only the editor session turns
them into user-visible messages.
"""

from __future__ import annotations

from typing import Any


class PhotonError(RuntimeError):
    """Base class for every engine failure."""


class DecodeError(PhotonError):
    """Input bytes could not be interpreted as an image."""


class FormatError(PhotonError):
    """A transport-encoded string or base64 payload is malformed."""


class ImageSourceError(PhotonError):
    """Reading a local file or fetching a remote image failed."""


class EmptyResponseError(PhotonError):
    """The generation capability returned no candidate content."""


class RefusedEditError(PhotonError):
    def __init__(self, commentary: str) -> None:
        super().__init__(f'The AI could not edit the image: "{commentary}"')
        self.commentary = commentary


class NoImageReturnedError(PhotonError):
    """The response carried neither an image nor usable text."""


class TransportError(PhotonError):
    def __init__(self, message: str = "Edit request failed.", *, detail: str | None = None) -> None:
        super().__init__(message)
        self.detail = detail


class QuotaExceededError(TransportError):
    """The capability reported a rate or quota limit (code 429)."""


class CapabilityError(Exception):
    """Raised by capabilities when the remote call fails.

    ``body`` is the structured error body as returned by the service: a
    mapping such as ``{"error": {"code": 429}}`` or the raw JSON text.
    """

    def __init__(self, message: str, *, code: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.body = body


class EmptyHistoryError(PhotonError):
    """History accessed before an initial image was set."""


class SessionBusyError(PhotonError):
    """An edit or image load is already in flight."""


class InvalidInstructionError(PhotonError):
    """Edit instruction is empty after trimming."""
