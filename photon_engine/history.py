"""Linear edit history with undo/redo."""

from __future__ import annotations

from .errors import EmptyHistoryError
from .images.codec import EncodedImage


class EditHistory:
    """Version log over canonical images.

    ``cursor`` always points at the displayed version. Committing after an
    undo drops every version past the cursor before appending, so the redo
    branch is lost for good.
    """

    def __init__(self) -> None:
        self._versions: list[EncodedImage] = []
        self._cursor = -1

    def __len__(self) -> int:
        return len(self._versions)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def versions(self) -> tuple[EncodedImage, ...]:
        return tuple(self._versions)

    @property
    def version_number(self) -> int:
        return self._cursor + 1

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return 0 <= self._cursor < len(self._versions) - 1

    def reset(self, image: EncodedImage) -> None:
        self._versions = [image]
        self._cursor = 0

    def clear(self) -> None:
        self._versions = []
        self._cursor = -1

    def commit(self, image: EncodedImage) -> None:
        if not self._versions:
            raise EmptyHistoryError("Cannot commit before an initial image is set.")
        del self._versions[self._cursor + 1 :]
        self._versions.append(image)
        self._cursor += 1

    def undo(self) -> bool:
        if not self.can_undo:
            return False
        self._cursor -= 1
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self._cursor += 1
        return True

    def current(self) -> EncodedImage:
        if not self._versions:
            raise EmptyHistoryError("History is empty.")
        return self._versions[self._cursor]
