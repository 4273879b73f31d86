"""Tests for secshell.tui.keys -- byte decoding and escape sequences."""

from __future__ import annotations

import pytest

from secshell.tui.errors import InputError
from secshell.tui.keys import (
    BACKSPACE,
    DELETE,
    END,
    ENTER,
    ESCAPE,
    ESCAPE_SEQUENCES,
    HOME,
    MAX_SEQUENCE_LENGTH,
    PAGE_DOWN,
    PAGE_UP,
    RESIZE,
    UNKNOWN,
    Key,
    KeyEvent,
    KeyReader,
    parse_key,
)

from .virtual_session import VirtualSession


def read_all(data: bytes) -> list[KeyEvent]:
    """Decode every key in *data* until input runs out."""
    reader = KeyReader(VirtualSession(data))
    events: list[KeyEvent] = []
    while True:
        try:
            events.append(reader.read_key())
        except InputError:
            return events


# ---------------------------------------------------------------------------
# KeyEvent and Key helpers
# ---------------------------------------------------------------------------


class TestKeyId:
    def test_printable(self):
        assert KeyEvent.printable("a").key_id == "a"

    def test_arrow(self):
        assert KeyEvent.arrow("up").key_id == Key.up

    def test_shift_arrow(self):
        assert KeyEvent.shift_arrow("left").key_id == Key.shift(Key.left)

    def test_control_letters(self):
        assert KeyEvent.control(0x13).key_id == Key.ctrl("s")
        assert KeyEvent.control(0x0C).key_id == Key.ctrl("l")
        assert KeyEvent.control(0x01).key_id == Key.ctrl("a")

    def test_tab_and_nul(self):
        assert KeyEvent.control(0x09).key_id == "tab"
        assert KeyEvent.control(0x00).key_id == "ctrl+space"

    def test_named_kinds(self):
        assert ENTER.key_id == Key.enter
        assert BACKSPACE.key_id == Key.backspace
        assert PAGE_UP.key_id == Key.page_up
        assert RESIZE.key_id == Key.resize


# ---------------------------------------------------------------------------
# parse_key
# ---------------------------------------------------------------------------


class TestParseKey:
    def test_printable_ascii(self):
        assert parse_key(b"a") == KeyEvent.printable("a")
        assert parse_key(b" ") == KeyEvent.printable(" ")
        assert parse_key(b"~") == KeyEvent.printable("~")

    def test_enter(self):
        assert parse_key(b"\r") == ENTER
        assert parse_key(b"\n") == ENTER

    def test_backspace(self):
        assert parse_key(b"\x7f") == BACKSPACE
        assert parse_key(b"\x08") == BACKSPACE

    def test_control(self):
        assert parse_key(b"\x13") == KeyEvent.control(0x13)

    def test_lone_escape(self):
        assert parse_key(b"\x1b") == ESCAPE

    def test_arrows_csi_and_ss3(self):
        for final, direction in zip("ABCD", ["up", "down", "right", "left"]):
            assert parse_key(b"\x1b[" + final.encode()) == KeyEvent.arrow(direction)
            assert parse_key(b"\x1bO" + final.encode()) == KeyEvent.arrow(direction)

    def test_home_variants(self):
        for seq in (b"\x1b[H", b"\x1bOH", b"\x1b[1~", b"\x1b[7~"):
            assert parse_key(seq) == HOME

    def test_end_variants(self):
        for seq in (b"\x1b[F", b"\x1bOF", b"\x1b[4~", b"\x1b[8~"):
            assert parse_key(seq) == END

    def test_page_and_delete(self):
        assert parse_key(b"\x1b[5~") == PAGE_UP
        assert parse_key(b"\x1b[6~") == PAGE_DOWN
        assert parse_key(b"\x1b[3~") == DELETE

    def test_shift_arrows(self):
        assert parse_key(b"\x1b[1;2A") == KeyEvent.shift_arrow("up")
        assert parse_key(b"\x1b[1;2D") == KeyEvent.shift_arrow("left")

    def test_unmatched_sequence_is_escape(self):
        assert parse_key(b"\x1b[99Z") == ESCAPE

    def test_utf8(self):
        assert parse_key("é".encode()) == KeyEvent.printable("é")
        assert parse_key("世".encode()) == KeyEvent.printable("世")

    def test_invalid_utf8(self):
        assert parse_key(b"\xc3\x28") == UNKNOWN

    def test_empty(self):
        assert parse_key(b"") == UNKNOWN


class TestSequenceTable:
    def test_lookahead_is_bounded(self):
        # Introducer plus at most four bytes.
        assert MAX_SEQUENCE_LENGTH == 5

    def test_no_entry_shadows_another(self):
        # Longest-prefix resolution relies on complete entries never being
        # prefixes of other entries.
        for seq in ESCAPE_SEQUENCES:
            assert not any(
                other != seq and other.startswith(seq) for other in ESCAPE_SEQUENCES
            ), seq


# ---------------------------------------------------------------------------
# KeyReader
# ---------------------------------------------------------------------------


class TestKeyReader:
    def test_plain_text(self):
        assert read_all(b"hi") == [KeyEvent.printable("h"), KeyEvent.printable("i")]

    def test_arrow_sequence(self):
        assert read_all(b"\x1b[A") == [KeyEvent.arrow("up")]

    def test_shift_arrow_sequence(self):
        assert read_all(b"\x1b[1;2C") == [KeyEvent.shift_arrow("right")]

    def test_lone_escape_times_out(self):
        assert read_all(b"\x1b") == [ESCAPE]

    def test_escape_then_ordinary_byte(self):
        assert read_all(b"\x1bx") == [ESCAPE, KeyEvent.printable("x")]

    def test_double_escape(self):
        assert read_all(b"\x1b\x1b[B") == [ESCAPE, KeyEvent.arrow("down")]

    def test_unknown_csi_is_swallowed(self):
        # Nothing of the unknown sequence leaks as printable text.
        assert read_all(b"\x1b[99Zq") == [ESCAPE, KeyEvent.printable("q")]

    def test_long_unknown_csi_is_swallowed(self):
        assert read_all(b"\x1b[1;5Aq") == [ESCAPE, KeyEvent.printable("q")]

    def test_sequence_followed_by_text(self):
        assert read_all(b"\x1b[3~a") == [DELETE, KeyEvent.printable("a")]

    def test_utf8_rune(self):
        assert read_all("añ".encode()) == [
            KeyEvent.printable("a"),
            KeyEvent.printable("ñ"),
        ]

    def test_four_byte_rune(self):
        assert read_all("😀".encode()) == [KeyEvent.printable("😀")]

    def test_truncated_utf8_keeps_following_byte(self):
        assert read_all(b"\xe4a") == [UNKNOWN, KeyEvent.printable("a")]

    def test_stray_continuation_byte(self):
        assert read_all(b"\x80") == [UNKNOWN]

    def test_control_bytes(self):
        assert read_all(b"\x0c\x01") == [KeyEvent.control(0x0C), KeyEvent.control(0x01)]

    def test_end_of_input_raises(self):
        reader = KeyReader(VirtualSession(b""))
        with pytest.raises(InputError):
            reader.read_key()

    def test_resize_is_reported_between_keys(self):
        session = VirtualSession(b"ab")
        session.resize_after(1, 100, 40)
        reader = KeyReader(session)
        assert reader.read_key() == KeyEvent.printable("a")
        assert reader.read_key() == RESIZE
        assert reader.read_key() == KeyEvent.printable("b")
        assert session.get_size() == (100, 40)
