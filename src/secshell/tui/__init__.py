"""secshell-tui: raw-mode terminal pager and line editor."""

# Configuration
from secshell.tui.config import TuiSettings, load_settings, save_settings

# Line editor
from secshell.tui.editor import Editor, run_edit
from secshell.tui.editor_buffer import EditorBuffer, Position, Selection

# Errors
from secshell.tui.errors import (
    FileError,
    InputError,
    SessionError,
    TuiError,
    ValidationError,
)

# Keybindings
from secshell.tui.keybindings import (
    DEFAULT_EDITOR_KEYBINDINGS,
    DEFAULT_PAGER_KEYBINDINGS,
    EditorAction,
    KeybindingsManager,
    PagerAction,
    editor_keybindings,
    pager_keybindings,
)

# Keyboard input handling
from secshell.tui.keys import Key, KeyEvent, KeyId, KeyReader, parse_key

# Pager
from secshell.tui.pager import Pager, PagerState, page_items, run_more

# Rendering
from secshell.tui.render import Frame, highlight_matches

# Terminal
from secshell.tui.terminal import ModeToken, Session, TerminalSession, TerminalState

# Utilities
from secshell.tui.utils import truncate_to_width, visible_width, wrap_words

__all__ = [
    # Configuration
    "TuiSettings",
    "load_settings",
    "save_settings",
    # Line editor
    "Editor",
    "EditorBuffer",
    "Position",
    "Selection",
    "run_edit",
    # Errors
    "FileError",
    "InputError",
    "SessionError",
    "TuiError",
    "ValidationError",
    # Keybindings
    "DEFAULT_EDITOR_KEYBINDINGS",
    "DEFAULT_PAGER_KEYBINDINGS",
    "EditorAction",
    "KeybindingsManager",
    "PagerAction",
    "editor_keybindings",
    "pager_keybindings",
    # Keyboard input handling
    "Key",
    "KeyEvent",
    "KeyId",
    "KeyReader",
    "parse_key",
    # Pager
    "Pager",
    "PagerState",
    "page_items",
    "run_more",
    # Rendering
    "Frame",
    "highlight_matches",
    # Terminal
    "ModeToken",
    "Session",
    "TerminalSession",
    "TerminalState",
    # Utilities
    "truncate_to_width",
    "visible_width",
    "wrap_words",
]
