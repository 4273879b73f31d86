"""Keyboard input decoding for raw-mode terminal applications.

Turns raw terminal bytes into logical :class:`KeyEvent` values. Escape
sequences are resolved against the declarative ``ESCAPE_SEQUENCES`` table by
longest-prefix match with a bounded lookahead, so a lone Escape press is told
apart from the start of a longer CSI or SS3 sequence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Protocol

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------

KeyId = str

KeyKind = Literal[
    "printable",
    "enter",
    "backspace",
    "delete",
    "arrow",
    "home",
    "end",
    "pageUp",
    "pageDown",
    "control",
    "shiftArrow",
    "escape",
    "unknown",
    "resize",
]

Direction = Literal["up", "down", "left", "right"]

# ---------------------------------------------------------------------------
# Key helper object
# ---------------------------------------------------------------------------


class Key:
    """Named key identifiers and modifier combinators."""

    escape = "escape"
    enter = "enter"
    backspace = "backspace"
    delete = "delete"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"
    resize = "resize"

    @staticmethod
    def ctrl(key: str) -> str:
        return f"ctrl+{key}"

    @staticmethod
    def shift(key: str) -> str:
        return f"shift+{key}"


# ---------------------------------------------------------------------------
# KeyEvent
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyEvent:
    """One logical key press.

    ``char`` is set for ``printable`` events, ``direction`` for ``arrow`` and
    ``shiftArrow`` events and ``code`` (the raw byte value) for ``control``
    events.
    """

    kind: KeyKind
    char: str = ""
    direction: Direction | None = None
    code: int = 0

    @classmethod
    def printable(cls, char: str) -> KeyEvent:
        return cls("printable", char=char)

    @classmethod
    def arrow(cls, direction: Direction) -> KeyEvent:
        return cls("arrow", direction=direction)

    @classmethod
    def shift_arrow(cls, direction: Direction) -> KeyEvent:
        return cls("shiftArrow", direction=direction)

    @classmethod
    def control(cls, code: int) -> KeyEvent:
        return cls("control", code=code)

    @property
    def key_id(self) -> KeyId:
        """Identifier in the format keybindings use, e.g. ``"ctrl+s"``."""
        if self.kind == "printable":
            return self.char
        if self.kind == "arrow":
            return str(self.direction)
        if self.kind == "shiftArrow":
            return Key.shift(str(self.direction))
        if self.kind == "control":
            return _control_key_id(self.code)
        return self.kind


ESCAPE = KeyEvent("escape")
ENTER = KeyEvent("enter")
BACKSPACE = KeyEvent("backspace")
DELETE = KeyEvent("delete")
HOME = KeyEvent("home")
END = KeyEvent("end")
PAGE_UP = KeyEvent("pageUp")
PAGE_DOWN = KeyEvent("pageDown")
UNKNOWN = KeyEvent("unknown")
RESIZE = KeyEvent("resize")


def _control_key_id(code: int) -> KeyId:
    if code == 0:
        return "ctrl+space"
    if code == 0x09:
        return "tab"
    if 1 <= code <= 26:
        return Key.ctrl(chr(code + ord("a") - 1))
    return f"ctrl+{code:#04x}"


# ---------------------------------------------------------------------------
# Escape sequence table (bytes following ESC)
# ---------------------------------------------------------------------------

ESCAPE_SEQUENCES: dict[bytes, KeyEvent] = {
    b"[A": KeyEvent.arrow("up"),
    b"[B": KeyEvent.arrow("down"),
    b"[C": KeyEvent.arrow("right"),
    b"[D": KeyEvent.arrow("left"),
    b"OA": KeyEvent.arrow("up"),
    b"OB": KeyEvent.arrow("down"),
    b"OC": KeyEvent.arrow("right"),
    b"OD": KeyEvent.arrow("left"),
    b"[H": HOME,
    b"OH": HOME,
    b"[1~": HOME,
    b"[7~": HOME,
    b"[F": END,
    b"OF": END,
    b"[4~": END,
    b"[8~": END,
    b"[5~": PAGE_UP,
    b"[6~": PAGE_DOWN,
    b"[3~": DELETE,
    b"[1;2A": KeyEvent.shift_arrow("up"),
    b"[1;2B": KeyEvent.shift_arrow("down"),
    b"[1;2C": KeyEvent.shift_arrow("right"),
    b"[1;2D": KeyEvent.shift_arrow("left"),
}

# Every proper prefix of a table entry; a candidate in here needs more bytes.
_SEQUENCE_PREFIXES: frozenset[bytes] = frozenset(
    seq[:i] for seq in ESCAPE_SEQUENCES for i in range(1, len(seq))
)

# Introducer plus at most four bytes.
MAX_SEQUENCE_LENGTH = max(len(seq) for seq in ESCAPE_SEQUENCES)

# Unknown CSI sequences are swallowed up to this many bytes.
_MAX_CSI_LENGTH = 16

ESC_SEQUENCE_TIMEOUT = 0.025

_ESC = 0x1B


def _is_csi_final(byte: int) -> bool:
    return 0x40 <= byte <= 0x7E


def _utf8_length(lead: int) -> int:
    """Return the encoded length announced by a UTF-8 lead byte, or 0."""
    if 0xC2 <= lead <= 0xDF:
        return 2
    if 0xE0 <= lead <= 0xEF:
        return 3
    if 0xF0 <= lead <= 0xF4:
        return 4
    return 0


def _decode_single(byte: int) -> KeyEvent:
    if byte in (0x0D, 0x0A):
        return ENTER
    if byte in (0x7F, 0x08):
        return BACKSPACE
    if byte == _ESC:
        return ESCAPE
    if byte < 0x20:
        return KeyEvent.control(byte)
    if byte < 0x7F:
        return KeyEvent.printable(chr(byte))
    return UNKNOWN


# ---------------------------------------------------------------------------
# parse_key: decode one complete byte string
# ---------------------------------------------------------------------------


def parse_key(data: bytes) -> KeyEvent:
    """Decode a complete key sequence such as ``b"\\x1b[1;2C"`` or ``b"a"``."""
    if not data:
        return UNKNOWN
    if data[0] == _ESC:
        if len(data) == 1:
            return ESCAPE
        return ESCAPE_SEQUENCES.get(data[1:], ESCAPE)
    if len(data) == 1:
        return _decode_single(data[0])
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return UNKNOWN
    if len(text) == 1 and text.isprintable():
        return KeyEvent.printable(text)
    return UNKNOWN


# ---------------------------------------------------------------------------
# KeyReader: blocking decoder over a byte source
# ---------------------------------------------------------------------------


class ByteSource(Protocol):
    """Where a :class:`KeyReader` gets its bytes from."""

    def read_byte(self, timeout: float | None = None) -> bytes | None: ...

    def consume_resize(self) -> bool: ...


class KeyReader:
    """Reads logical keys from a :class:`ByteSource`.

    There must be a single reader per source. Bytes read ahead while probing
    an escape sequence that turn out not to belong to it are kept and
    decoded by the next call.
    """

    def __init__(
        self,
        source: ByteSource,
        *,
        escape_timeout: float = ESC_SEQUENCE_TIMEOUT,
    ) -> None:
        self._source = source
        self._escape_timeout = escape_timeout
        self._pending: list[bytes] = []

    def read_key(self) -> KeyEvent:
        """Block until one key is available and return it.

        Raises :class:`~secshell.tui.errors.InputError` when the source fails.
        """
        while True:
            if not self._pending and self._source.consume_resize():
                return RESIZE
            byte = self._next_byte(None)
            if byte is None:
                continue
            value = byte[0]
            if value == _ESC:
                return self._read_escape()
            if value >= 0x80:
                return self._read_utf8(value)
            return _decode_single(value)

    def _next_byte(self, timeout: float | None) -> bytes | None:
        if self._pending:
            return self._pending.pop(0)
        return self._source.read_byte(timeout)

    def _read_escape(self) -> KeyEvent:
        seq = b""
        while len(seq) < MAX_SEQUENCE_LENGTH:
            byte = self._next_byte(self._escape_timeout)
            if byte is None:
                break
            candidate = seq + byte
            if candidate in ESCAPE_SEQUENCES and candidate not in _SEQUENCE_PREFIXES:
                return ESCAPE_SEQUENCES[candidate]
            if candidate in _SEQUENCE_PREFIXES:
                seq = candidate
                continue
            if not seq:
                # ESC followed by an ordinary byte: decode that byte next.
                self._pending.append(byte)
                return ESCAPE
            seq = candidate
            break

        if seq in ESCAPE_SEQUENCES:
            return ESCAPE_SEQUENCES[seq]
        if seq[:1] == b"[" and len(seq) > 1 and not _is_csi_final(seq[-1]):
            self._discard_csi(len(seq))
        if seq:
            logger.debug("unrecognised escape sequence %r", seq)
        return ESCAPE

    def _discard_csi(self, consumed: int) -> None:
        while consumed < _MAX_CSI_LENGTH:
            byte = self._next_byte(self._escape_timeout)
            if byte is None or _is_csi_final(byte[0]):
                return
            consumed += 1

    def _read_utf8(self, lead: int) -> KeyEvent:
        length = _utf8_length(lead)
        if not length:
            return UNKNOWN
        data = bytes([lead])
        while len(data) < length:
            byte = self._next_byte(self._escape_timeout)
            if byte is None:
                return UNKNOWN
            if not 0x80 <= byte[0] <= 0xBF:
                self._pending.append(byte)
                return UNKNOWN
            data += byte
        return parse_key(data)
