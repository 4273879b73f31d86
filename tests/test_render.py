"""Tests for secshell.tui.render -- frame assembly and highlighting."""

from __future__ import annotations

from secshell.tui.render import (
    CLEAR_EOL,
    CLEAR_SCREEN,
    HIDE_CURSOR,
    RESET,
    REVERSE,
    SHOW_CURSOR,
    Frame,
    highlight_matches,
    move_cursor,
    reverse,
)

from .virtual_session import VirtualSession


class TestPrimitives:
    def test_move_cursor_is_one_based(self):
        assert move_cursor(0, 0) == "\x1b[1;1H"
        assert move_cursor(4, 9) == "\x1b[5;10H"

    def test_reverse(self):
        assert reverse("x") == f"{REVERSE}x{RESET}"


class TestHighlightMatches:
    def test_case_insensitive(self):
        assert highlight_matches("Apple pie", "apple") == f"{REVERSE}Apple{RESET} pie"

    def test_every_occurrence(self):
        assert highlight_matches("abab", "ab") == reverse("ab") + reverse("ab")

    def test_no_query_unchanged(self):
        assert highlight_matches("text", "") == "text"

    def test_regex_characters_are_literal(self):
        assert highlight_matches("a.b axb", ".") == "a" + reverse(".") + "b axb"

    def test_folds_like_search(self):
        # "ß" casefolds to "ss", so an "SS" query lands on the single character.
        assert highlight_matches("Straße", "SS") == "Stra" + reverse("ß") + "e"
        assert highlight_matches("STRASSE", "straße") == reverse("STRASSE")

    def test_partial_fold_covers_whole_character(self):
        assert highlight_matches("maße", "as") == "m" + reverse("aß") + "e"


class TestFrame:
    def test_line_positions_and_clears(self):
        frame = Frame()
        frame.line(2, "hello")
        assert frame.render() == HIDE_CURSOR + move_cursor(2, 0) + "hello" + CLEAR_EOL

    def test_full_clear_comes_first(self):
        frame = Frame(full_clear=True)
        frame.line(0, "a")
        rendered = frame.render()
        assert rendered.startswith(HIDE_CURSOR + CLEAR_SCREEN)

    def test_cursor_shown_last(self):
        frame = Frame()
        frame.line(0, "a")
        frame.place_cursor(3, 4)
        assert frame.render().endswith(move_cursor(3, 4) + SHOW_CURSOR)

    def test_cursor_hidden_without_placement(self):
        frame = Frame()
        frame.line(0, "a")
        assert SHOW_CURSOR not in frame.render()

    def test_flush_is_one_write(self):
        session = VirtualSession()
        frame = Frame(full_clear=True)
        frame.line(0, "one")
        frame.line(1, "two")
        frame.flush(session)
        assert session._buffer == [frame.render()]
