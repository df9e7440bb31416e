"""Snapshot of editor state and helpers to render it for a prompt."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

_CONTENT_LIMIT = 2000
_SELECTION_LIMIT = 1000
_MAX_OPEN_FILES = 10


def truncate(text: str, max_len: int) -> str:
    """Cut text to max_len characters, appending "..." when cut."""
    if len(text) <= max_len:
        return text
    return text[:max_len] + "..."


@dataclass
class EditorContext:
    """The active file, cursor, selection and open files of an editor."""

    file_path: str = ""
    file_content: str = ""
    cursor_line: int = -1
    cursor_column: int = -1
    selection: str = ""
    open_files: list[str] = field(default_factory=list)

    def capture(
        self,
        file_path: str,
        text: str,
        cursor_line: int,
        cursor_column: int,
        selection: str = "",
        open_files: Iterable[str] = (),
    ) -> None:
        """Record the editor state, truncating content, selection and file list."""
        self.file_path = file_path
        self.file_content = truncate(text, _CONTENT_LIMIT)
        self.cursor_line = cursor_line
        self.cursor_column = cursor_column
        self.selection = truncate(selection, _SELECTION_LIMIT)
        self.open_files = list(open_files)[:_MAX_OPEN_FILES]

    def is_empty(self) -> bool:
        return self.cursor_line < 0

    def to_system_prompt_chunk(self) -> str:
        """Render the context for injection into a system prompt."""
        if self.is_empty():
            return ""
        parts = [
            "[Editor Context]\n",
            f"Active File: {self.file_path}\n",
            f"Cursor: line {self.cursor_line}, column {self.cursor_column}\n",
            f"Selection: {self.selection}\n" if self.selection else "Selection: (none)\n",
        ]
        if self.open_files:
            parts.append("Open Files: " + ", ".join(self.open_files) + "\n")
        parts.append("File Content (first 2000 chars):\n")
        parts.append(self.file_content)
        return "".join(parts)

    def get_buffer_context(self, content: str, cursor_line: int, max_chars: int) -> str:
        """Lines around the cursor, marked with ">>> ", within a character budget."""
        if not content:
            return ""
        lines = content.split("\n")
        cursor_line = min(cursor_line, len(lines) - 1)
        start = max(0, cursor_line - 5)
        end = min(len(lines) - 1, cursor_line + 5)
        parts: list[str] = []
        used = 0
        for index, line in enumerate(lines[start:end + 1], start):
            if used + len(line) > max_chars:
                parts.append("...")
                break
            if index == cursor_line:
                parts.append(">>> ")
            parts.append(line + "\n")
            used += len(line) + 1
        return "".join(parts).strip()

    def get_buffer_context_around_cursor(
        self, content: str, cursor_line: int, cursor_col: int, lines_around: int
    ) -> str:
        """Numbered lines around the cursor with a cursor marker inserted."""
        if not content:
            return ""
        lines = content.split("\n")
        cursor_line = min(cursor_line, len(lines) - 1)
        start = max(0, cursor_line - lines_around)
        end = min(len(lines) - 1, cursor_line + lines_around)
        parts: list[str] = []
        for index, line in enumerate(lines[start:end + 1], start):
            if index == cursor_line:
                if 0 <= cursor_col < len(line):
                    line = line[:cursor_col] + "<<<CURSOR>>>" + line[cursor_col:]
                parts.append(f">>> Line {index + 1}: {line}\n")
            else:
                parts.append(f"    Line {index + 1}: {line}\n")
        return "".join(parts).strip()