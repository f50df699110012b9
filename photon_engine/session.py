"""Editor session orchestration.

The session owns the edit history and is the only place that turns engine
failures into user-visible messages. Work is serialized with a busy flag;
every new image (or explicit reset) bumps an epoch so results from work that
was started before it are dropped instead of committed.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from .errors import (
    DecodeError,
    EmptyHistoryError,
    EmptyResponseError,
    FormatError,
    ImageSourceError,
    InvalidInstructionError,
    NoImageReturnedError,
    PhotonError,
    QuotaExceededError,
    RefusedEditError,
    SessionBusyError,
    TransportError,
)
from .events import EventWriter, emit_event
from .history import EditHistory
from .images.codec import EncodedImage, decode, suffix_for_media_type
from .images.normalize import CANONICAL_EDGE, normalize
from .images.sources import RawImageSource, acquire
from .transport import EditResult, EditTransport
from .utils import monotonic_ms, sanitize_filename

PREPARING_MESSAGE = "Preparing your image..."
EDITING_MESSAGE = "Photon is working its magic..."
EMPTY_INSTRUCTION_MESSAGE = "Please enter an editing instruction."


def describe_error(exc: BaseException) -> str:
    if isinstance(exc, InvalidInstructionError):
        return EMPTY_INSTRUCTION_MESSAGE
    if isinstance(exc, RefusedEditError):
        return str(exc)
    if isinstance(exc, NoImageReturnedError):
        return "The AI did not return an image. Please try a different prompt."
    if isinstance(exc, EmptyResponseError):
        return "No valid candidates returned from the API."
    if isinstance(exc, QuotaExceededError):
        return "You have hit the request quota. Please wait a moment and try again."
    if isinstance(exc, TransportError):
        return "Something went wrong while editing the image. Please try again."
    if isinstance(exc, DecodeError):
        return "Failed to process image. Please choose a PNG, JPEG or WEBP file."
    if isinstance(exc, ImageSourceError):
        return "The image could not be loaded."
    if isinstance(exc, FormatError):
        return "The image data is malformed."
    if isinstance(exc, PhotonError):
        return str(exc) or "An unknown error occurred."
    return "An unknown error occurred."


class EditorSession:
    def __init__(
        self,
        transport: EditTransport,
        *,
        events: EventWriter | None = None,
        edge: int = CANONICAL_EDGE,
    ) -> None:
        self.transport = transport
        self.events = events
        self.edge = edge
        self.history = EditHistory()
        self.busy = False
        self.error: str | None = None
        self.loading_message = ""
        self.last_commentary = ""
        self.source_name: str | None = None
        self._epoch = 0
        emit_event(self.events, "session_started", capability=transport.capability.name, edge=edge)

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def current_image(self) -> EncodedImage | None:
        if not len(self.history):
            return None
        return self.history.current()

    def clear_error(self) -> None:
        self.error = None

    def reset(self) -> None:
        self._epoch += 1
        self.history.clear()
        self.busy = False
        self.error = None
        self.loading_message = ""
        self.last_commentary = ""
        self.source_name = None
        emit_event(self.events, "session_reset", epoch=self._epoch)

    async def load_image(self, source: RawImageSource) -> bool:
        """Replace the history with the normalized ``source``.

        Returns ``False`` when loading failed or a newer load superseded it.
        """
        self._epoch += 1
        epoch = self._epoch
        self.history.clear()
        self.source_name = source.name
        self.busy = True
        self.loading_message = PREPARING_MESSAGE
        self.error = None
        self.last_commentary = ""
        started = monotonic_ms()
        try:
            raw, media_type = await asyncio.to_thread(acquire, source)
            image = await asyncio.to_thread(normalize, raw, edge=self.edge)
        except PhotonError as exc:
            if epoch != self._epoch:
                return False
            self.error = describe_error(exc)
            emit_event(
                self.events,
                "image_load_failed",
                source=source.name,
                error_type=type(exc).__name__,
                detail=str(exc),
            )
            return False
        finally:
            if epoch == self._epoch:
                self.busy = False
                self.loading_message = ""

        if epoch != self._epoch:
            emit_event(self.events, "image_load_discarded", source=source.name, epoch=epoch)
            return False
        self.history.reset(image)
        emit_event(
            self.events,
            "image_loaded",
            source=source.name,
            input_media_type=media_type,
            input_bytes=len(raw),
            elapsed_ms=monotonic_ms() - started,
        )
        return True

    async def submit_edit(self, instruction: str) -> EditResult | None:
        """Run one edit against the current version and commit the result.

        Returns ``None`` when the edit failed (see ``error``) or when a new
        image was loaded while the request was in flight.
        """
        if not instruction or not instruction.strip():
            self.error = EMPTY_INSTRUCTION_MESSAGE
            raise InvalidInstructionError(EMPTY_INSTRUCTION_MESSAGE)
        if self.busy:
            raise SessionBusyError("An edit is already in progress.")
        source_image = self.current_image
        if source_image is None:
            raise EmptyHistoryError("Load an image before editing.")

        epoch = self._epoch
        self.busy = True
        self.loading_message = EDITING_MESSAGE
        self.error = None
        started = monotonic_ms()
        emit_event(self.events, "edit_requested", version=self.history.version_number, instruction=instruction)
        try:
            result = await self.transport.request_edit(source_image, instruction)
        except PhotonError as exc:
            if epoch != self._epoch:
                emit_event(self.events, "edit_discarded", epoch=epoch, error_type=type(exc).__name__)
                return None
            self.error = describe_error(exc)
            emit_event(
                self.events,
                "edit_failed",
                version=self.history.version_number,
                error_type=type(exc).__name__,
                elapsed_ms=monotonic_ms() - started,
            )
            return None
        finally:
            if epoch == self._epoch:
                self.busy = False
                self.loading_message = ""

        if epoch != self._epoch:
            emit_event(self.events, "edit_discarded", epoch=epoch)
            return None
        self.history.commit(result.result_image)
        self.last_commentary = result.commentary
        emit_event(
            self.events,
            "edit_committed",
            version=self.history.version_number,
            versions=len(self.history),
            commentary=result.commentary,
            elapsed_ms=monotonic_ms() - started,
        )
        return result

    def undo(self) -> bool:
        if self.busy:
            return False
        moved = self.history.undo()
        if moved:
            emit_event(self.events, "history_moved", direction="undo", version=self.history.version_number)
        return moved

    def redo(self) -> bool:
        if self.busy:
            return False
        moved = self.history.redo()
        if moved:
            emit_event(self.events, "history_moved", direction="redo", version=self.history.version_number)
        return moved

    def export_current(self, directory: Path) -> Path:
        """Write the displayed version as ``edited-v<n>-<source name>``."""
        if self.busy:
            raise SessionBusyError("Cannot export while an operation is in progress.")
        image = self.history.current()
        raw, media_type = decode(image)
        stem = Path(sanitize_filename(self.source_name or "image")).stem or "image"
        path = Path(directory) / f"edited-v{self.history.version_number}-{stem}{suffix_for_media_type(media_type)}"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(raw)
        emit_event(self.events, "image_exported", version=self.history.version_number, path=path)
        return path
