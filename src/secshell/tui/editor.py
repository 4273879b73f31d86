"""Line-oriented text editor.

A single, non-modal key loop over an :class:`EditorBuffer`: every key takes
effect immediately. Shift+arrows select, Ctrl-L and Ctrl-A select the line or
the whole buffer, Ctrl-S saves and Ctrl-Q quits, asking first when there are
unsaved changes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from secshell.tui.config import TuiSettings
from secshell.tui.editor_buffer import EditorBuffer
from secshell.tui.errors import FileError, InputError
from secshell.tui.keybindings import EditorAction, KeybindingsManager, editor_keybindings
from secshell.tui.keys import Direction, KeyEvent, KeyReader
from secshell.tui.render import Frame, reverse
from secshell.tui.terminal import Session, TerminalSession
from secshell.tui.utils import char_width, display_char, truncate_to_width, visible_width

logger = logging.getLogger(__name__)

QuitReason = Literal["user", "input-closed"]

HELP_MESSAGE = (
    "HELP: Ctrl+S = Save | Ctrl+Q = Quit | Ctrl+L = Select Line | "
    "Ctrl+A = Select All | Shift+Arrows = Select | Esc = Cancel Select"
)
QUIT_PROMPT = "Save changes before quitting? (y/n, any other key cancels)"
NO_NAME = "[No Name]"

# Status bar and message line.
_RESERVED_ROWS = 2

_MOTIONS: dict[str, Direction] = {
    "cursorUp": "up",
    "cursorDown": "down",
    "cursorLeft": "left",
    "cursorRight": "right",
}

_SELECTIONS: dict[str, Direction] = {
    "selectUp": "up",
    "selectDown": "down",
    "selectLeft": "left",
    "selectRight": "right",
}


def _span_width(text: str) -> int:
    return sum(char_width(ch) for ch in text)


class Editor:
    """Interactive editor for *buffer* on *session*."""

    def __init__(
        self,
        session: Session,
        buffer: EditorBuffer,
        *,
        settings: TuiSettings | None = None,
        keybindings: KeybindingsManager[EditorAction] | None = None,
        status_message: str = HELP_MESSAGE,
    ) -> None:
        self._session = session
        settings = settings or TuiSettings()
        self._keys = keybindings or editor_keybindings(settings.editor_keybindings)
        self._reader = KeyReader(session, escape_timeout=settings.escape_timeout)
        self.buffer = buffer
        self.status_message = status_message
        self.offset_line = 0
        self.offset_col = 0
        self.confirming_quit = False
        self._full_redraw = True
        self._drawn_offsets: tuple[int, int] | None = None
        # Fail before any drawing when the terminal size is unavailable.
        session.get_size()

    @property
    def text_rows(self) -> int:
        _, rows = self._session.get_size()
        return max(rows - _RESERVED_ROWS, 1)

    # -- main loop -----------------------------------------------------------

    def run(self) -> QuitReason:
        """Run until the user quits or input closes. The terminal is always restored."""
        with self._session.interactive():
            while True:
                self.render_frame().flush(self._session)
                try:
                    event = self._reader.read_key()
                except InputError as exc:
                    if self.buffer.is_dirty:
                        logger.info("input closed; discarding unsaved changes: %s", exc)
                    else:
                        logger.info("editor input closed: %s", exc)
                    return "input-closed"
                if self.handle_key(event):
                    logger.debug("editor quit by user")
                    return "user"

    # -- key handling --------------------------------------------------------

    def handle_key(self, event: KeyEvent) -> bool:  # noqa: C901
        """Apply one key. Returns ``True`` when the editor should exit."""
        if event.kind == "resize":
            self._full_redraw = True
            return False
        if self.confirming_quit:
            return self._handle_quit_answer(event)

        buf = self.buffer
        action = self._keys.action_for(event)

        if action == "quit":
            if not buf.is_dirty:
                return True
            self.confirming_quit = True
            self.status_message = QUIT_PROMPT
        elif action == "save":
            buf.clear_selection()
            self.save()
        elif action in _MOTIONS:
            buf.clear_selection()
            buf.move(_MOTIONS[action])
            self.status_message = ""
        elif action == "cursorLineStart":
            buf.clear_selection()
            buf.move_line_start()
        elif action == "cursorLineEnd":
            buf.clear_selection()
            buf.move_line_end()
        elif action == "pageUp" or action == "pageDown":
            buf.clear_selection()
            buf.move_page(self.text_rows, "up" if action == "pageUp" else "down")
        elif action in _SELECTIONS:
            buf.extend_selection(_SELECTIONS[action])
            self.status_message = "Selecting..."
        elif action == "selectLine":
            buf.select_line()
            self.status_message = "Line selected"
        elif action == "selectAll":
            buf.select_all()
            self.status_message = "All text selected"
        elif action == "cancelSelection":
            buf.clear_selection()
            self.status_message = ""
        elif action == "deleteCharBackward":
            self._edit(buf.backspace)
        elif action == "deleteCharForward":
            self._edit(buf.delete_forward)
        elif action == "newLine":
            self._edit(buf.insert_newline)
        elif event.kind == "printable":
            self._edit(lambda: buf.insert_char(event.char))
        elif event.kind == "control" and event.code == 0x09:
            self._edit(lambda: buf.insert_char("\t"))
        else:
            logger.debug("ignoring key %s", event.key_id)
        return False

    def _edit(self, operation) -> None:
        selection = self.buffer.selection
        had_selection = selection is not None and not selection.is_empty
        operation()
        self.status_message = "Selection deleted" if had_selection else ""

    def _handle_quit_answer(self, event: KeyEvent) -> bool:
        self.confirming_quit = False
        answer = event.char.lower() if event.kind == "printable" else ""
        if answer == "y":
            return self.save()
        if answer == "n":
            return True
        self.status_message = "Quit aborted."
        return False

    def save(self) -> bool:
        """Save the buffer, reporting the outcome in the message line."""
        try:
            count = self.buffer.save()
        except FileError as exc:
            logger.info("save failed: %s", exc)
            self.status_message = f"Save error: {exc}"
            return False
        self.status_message = f"Saved {count} lines to {self.buffer.file_name}"
        return True

    # -- rendering -----------------------------------------------------------

    def scroll(self) -> None:
        """Adjust the offsets so the cursor is on screen."""
        columns, _ = self._session.get_size()
        rows = self.text_rows
        line, col = self.buffer.cursor

        if line < self.offset_line:
            self.offset_line = line
        if line >= self.offset_line + rows:
            self.offset_line = line - rows + 1

        if col < self.offset_col:
            self.offset_col = col
        text = self.buffer.lines[line]
        while self.offset_col < col and _span_width(text[self.offset_col : col]) >= columns:
            self.offset_col += 1

    def render_frame(self) -> Frame:
        self.scroll()
        columns, rows = self._session.get_size()
        offsets = (self.offset_line, self.offset_col)
        frame = Frame(full_clear=self._full_redraw or offsets != self._drawn_offsets)
        self._full_redraw = False
        self._drawn_offsets = offsets

        for row in range(self.text_rows):
            index = row + self.offset_line
            if index < len(self.buffer.lines):
                frame.line(row, self._draw_line(index, columns))
            else:
                frame.line(row, "~")

        frame.line(rows - 2, reverse(self._status_bar(columns)))
        frame.line(rows - 1, truncate_to_width(self.status_message, columns))

        line, col = self.buffer.cursor
        text = self.buffer.lines[line]
        frame.place_cursor(
            line - self.offset_line,
            _span_width(text[self.offset_col : col]),
        )
        return frame

    def _draw_line(self, index: int, columns: int) -> str:
        buf = self.buffer
        text = buf.lines[index]
        out: list[str] = []
        used = 0
        col = self.offset_col
        while col < len(text):
            ch = display_char(text[col])
            width = char_width(text[col])
            if used + width > columns:
                break
            out.append(reverse(ch) if buf.is_selected(index, col) else ch)
            used += width
            col += 1
        # A selected line break shows as one highlighted cell.
        if col == len(text) and used < columns and buf.is_selected(index, col):
            out.append(reverse(" "))
        return "".join(out)

    def _status_bar(self, columns: int) -> str:
        buf = self.buffer
        name = str(buf.file_name) if buf.file_name is not None else NO_NAME
        left = f" {name}{' (modified)' if buf.is_dirty else ''}"
        right = f" {buf.cursor.line + 1}:{buf.cursor.col + 1} "
        room = columns - visible_width(right)
        if visible_width(left) > room - 1:
            left = truncate_to_width(left, max(room - 1, 0))
        padding = max(columns - visible_width(left) - visible_width(right), 0)
        return truncate_to_width(left + " " * padding + right, columns, ellipsis="")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run_edit(
    path: str | Path | None,
    *,
    session: Session | None = None,
    settings: TuiSettings | None = None,
) -> QuitReason:
    """``edit`` command: open *path* (created on first save) and edit it.

    Raises :class:`FileError` when an existing file cannot be read.
    """
    if path is None:
        buffer, message = EditorBuffer(), HELP_MESSAGE
    else:
        buffer, is_new = EditorBuffer.open(path)
        message = f"New file: {path}" if is_new else f"Opened {path}"

    if session is not None:
        return Editor(session, buffer, settings=settings, status_message=message).run()
    terminal = TerminalSession.open()
    try:
        return Editor(terminal, buffer, settings=settings, status_message=message).run()
    finally:
        terminal.close()
