"""Mutable multi-line text model with a cursor and an optional selection.

Lines are Python strings, so columns count Unicode code points rather than
bytes. The buffer always holds at least one line, the cursor always lies
within it, and a selection is normalized once when it is created.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple, Sequence

from secshell.tui.errors import FileError
from secshell.tui.keys import Direction

logger = logging.getLogger(__name__)


class Position(NamedTuple):
    """A buffer coordinate. Tuple order is document order."""

    line: int
    col: int


@dataclass(frozen=True)
class Selection:
    """A selected range ``[start, end)`` grown from ``anchor``."""

    anchor: Position
    start: Position
    end: Position

    @classmethod
    def between(cls, anchor: Position, cursor: Position) -> Selection:
        return cls(anchor=anchor, start=min(anchor, cursor), end=max(anchor, cursor))

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def contains(self, pos: Position) -> bool:
        return self.start <= pos < self.end


class EditorBuffer:
    """Editable lines plus cursor, selection and dirty tracking."""

    def __init__(
        self,
        lines: Sequence[str] | None = None,
        *,
        file_name: str | Path | None = None,
    ) -> None:
        self.lines: list[str] = list(lines) if lines else [""]
        self.cursor = Position(0, 0)
        self.selection: Selection | None = None
        self.is_dirty = False
        self.file_name = Path(file_name) if file_name is not None else None

    # -- files ---------------------------------------------------------------

    @classmethod
    def open(cls, path: str | Path) -> tuple[EditorBuffer, bool]:
        """Load *path*. Returns ``(buffer, is_new_file)``.

        A missing file yields an empty buffer bound to *path*; it is created
        on the first save.
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return cls(file_name=path), True
        except (OSError, UnicodeDecodeError) as exc:
            raise FileError(f"could not open file {path}: {exc}", path) from exc
        return cls(text.splitlines(), file_name=path), False

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def save(self) -> int:
        """Write the buffer to its file and return the number of lines written."""
        if self.file_name is None:
            raise FileError("no file name; cannot save")
        try:
            self.file_name.write_text(self.text, encoding="utf-8")
        except OSError as exc:
            raise FileError(f"could not write file {self.file_name}: {exc}", self.file_name) from exc
        self.is_dirty = False
        logger.info("saved %d lines to %s", len(self.lines), self.file_name)
        return len(self.lines)

    # -- cursor motion -------------------------------------------------------

    def _line_len(self, line: int) -> int:
        return len(self.lines[line])

    def _set_cursor(self, line: int, col: int) -> None:
        line = min(max(line, 0), len(self.lines) - 1)
        col = min(max(col, 0), self._line_len(line))
        self.cursor = Position(line, col)

    def move(self, direction: Direction) -> None:
        """Move one step. Left/right wrap across line ends; up/down clamp the column."""
        line, col = self.cursor
        if direction == "left":
            if col > 0:
                self._set_cursor(line, col - 1)
            elif line > 0:
                self._set_cursor(line - 1, self._line_len(line - 1))
        elif direction == "right":
            if col < self._line_len(line):
                self._set_cursor(line, col + 1)
            elif line < len(self.lines) - 1:
                self._set_cursor(line + 1, 0)
        elif direction == "up":
            self._set_cursor(line - 1, col)
        elif direction == "down":
            self._set_cursor(line + 1, col)

    def move_line_start(self) -> None:
        self._set_cursor(self.cursor.line, 0)

    def move_line_end(self) -> None:
        self._set_cursor(self.cursor.line, self._line_len(self.cursor.line))

    def move_page(self, rows: int, direction: Direction) -> None:
        delta = -rows if direction == "up" else rows
        self._set_cursor(self.cursor.line + delta, self.cursor.col)

    # -- selection -----------------------------------------------------------

    def extend_selection(self, direction: Direction) -> None:
        """Start or grow a selection anchored where it began, then move."""
        anchor = self.selection.anchor if self.selection else self.cursor
        self.move(direction)
        self.selection = Selection.between(anchor, self.cursor)

    def clear_selection(self) -> bool:
        """Deactivate the selection without touching the text."""
        had_selection = self.selection is not None
        self.selection = None
        return had_selection

    def select_line(self) -> None:
        line = self.cursor.line
        start = Position(line, 0)
        self.selection = Selection(start, start, Position(line, self._line_len(line)))

    def select_all(self) -> None:
        last = len(self.lines) - 1
        start = Position(0, 0)
        self.selection = Selection(start, start, Position(last, self._line_len(last)))

    def is_selected(self, line: int, col: int) -> bool:
        """Whether the character at *line*, *col* (or the line break at its end) is selected."""
        return self.selection is not None and self.selection.contains(Position(line, col))

    def delete_selection(self) -> bool:
        """Remove the selected text. Returns ``False`` when nothing was selected.

        An empty selection is dropped without touching the text.
        """
        if self.selection is None:
            return False
        if self.selection.is_empty:
            self.selection = None
            return False
        start, end = self.selection.start, self.selection.end
        prefix = self.lines[start.line][: start.col]
        suffix = self.lines[end.line][end.col :]
        # Selecting everything leaves the single joined line, possibly empty.
        self.lines[start.line : end.line + 1] = [prefix + suffix]
        self.selection = None
        self._set_cursor(start.line, start.col)
        self.is_dirty = True
        return True

    # -- editing -------------------------------------------------------------

    def insert_char(self, ch: str) -> None:
        self.delete_selection()
        line, col = self.cursor
        text = self.lines[line]
        self.lines[line] = text[:col] + ch + text[col:]
        self.cursor = Position(line, col + len(ch))
        self.is_dirty = True

    def insert_newline(self) -> None:
        self.delete_selection()
        line, col = self.cursor
        text = self.lines[line]
        self.lines[line : line + 1] = [text[:col], text[col:]]
        self.cursor = Position(line + 1, 0)
        self.is_dirty = True

    def backspace(self) -> None:
        """Delete the character before the cursor, joining lines at column 0."""
        if self.delete_selection():
            return
        line, col = self.cursor
        if col > 0:
            text = self.lines[line]
            self.lines[line] = text[: col - 1] + text[col:]
            self.cursor = Position(line, col - 1)
        elif line > 0:
            join_col = self._line_len(line - 1)
            self.lines[line - 1] += self.lines.pop(line)
            self.cursor = Position(line - 1, join_col)
        else:
            return
        self.is_dirty = True

    def delete_forward(self) -> None:
        """Delete the character after the cursor, joining lines at end of line."""
        if self.delete_selection():
            return
        line, col = self.cursor
        text = self.lines[line]
        if col < len(text):
            self.lines[line] = text[:col] + text[col + 1 :]
        elif line < len(self.lines) - 1:
            self.lines[line] += self.lines.pop(line + 1)
        else:
            return
        self.is_dirty = True
