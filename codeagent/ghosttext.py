"""Inline ghost-text suggestions shown at a cursor position."""

from __future__ import annotations

from collections.abc import Callable


class GhostTextProvider:
    """Holds one suggestion and reports where it is shown."""

    def __init__(self) -> None:
        self._text = ""
        self._line = 0
        self._column = 0
        self._active = False
        self.accepted_callbacks: list[Callable[[str], None]] = []

    @property
    def suggestion(self) -> str:
        """The current suggestion text."""
        return self._text

    def set_suggestion(self, text: str, line: int, column: int) -> None:
        """Show text at a 0-based line and column; empty text hides it."""
        if (text, line, column) == (self._text, self._line, self._column):
            return
        self._text = text
        self._line = line
        self._column = column
        self._active = bool(text)

    def clear_suggestion(self) -> None:
        self._text = ""
        self._active = False

    def has_suggestion(self) -> bool:
        return bool(self._text)

    def suggestion_position(self) -> tuple[int, int]:
        """Return (line, column) of the suggestion."""
        return self._line, self._column

    def inline_notes(self, line: int) -> list[int]:
        """Columns on the given line where a note is shown."""
        if not self._active or line != self._line:
            return []
        return [self._column]

    def note_activated(self, left_button: bool) -> None:
        """Accept the suggestion when the note is clicked with the left button."""
        if left_button and self._active:
            for callback in self.accepted_callbacks:
                callback(self._text)