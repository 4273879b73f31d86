"""Tests for secshell.tui.keybindings -- pager and editor keybindings."""

from __future__ import annotations

from secshell.tui.keybindings import (
    DEFAULT_EDITOR_KEYBINDINGS,
    DEFAULT_PAGER_KEYBINDINGS,
    KeybindingsManager,
    editor_keybindings,
    pager_keybindings,
)
from secshell.tui.keys import ENTER, ESCAPE, Key, KeyEvent


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestDefaultPagerKeybindings:
    def test_has_all_actions(self):
        for action in [
            "quit", "search", "nextMatch", "prevMatch", "clearSearch",
            "toggleHelp", "toggleWrap", "prevPage", "nextPage",
            "firstPage", "lastPage",
        ]:
            assert action in DEFAULT_PAGER_KEYBINDINGS, f"Missing action: {action}"

    def test_quit_keys(self):
        kb = pager_keybindings()
        assert kb.matches(KeyEvent.printable("q"), "quit")
        assert kb.matches(KeyEvent.printable("Q"), "quit")
        assert kb.matches(KeyEvent.control(0x03), "quit")

    def test_previous_match_keys(self):
        kb = pager_keybindings()
        for ch in "NpP":
            assert kb.action_for(KeyEvent.printable(ch)) == "prevMatch"

    def test_space_pages_forward(self):
        assert pager_keybindings().action_for(KeyEvent.printable(" ")) == "nextPage"


class TestDefaultEditorKeybindings:
    def test_has_selection_actions(self):
        for action in [
            "selectUp", "selectDown", "selectLeft", "selectRight",
            "selectLine", "selectAll", "cancelSelection",
        ]:
            assert action in DEFAULT_EDITOR_KEYBINDINGS, f"Missing action: {action}"

    def test_shift_arrows_select(self):
        kb = editor_keybindings()
        assert kb.action_for(KeyEvent.shift_arrow("up")) == "selectUp"
        assert kb.action_for(KeyEvent.arrow("up")) == "cursorUp"

    def test_control_keys(self):
        kb = editor_keybindings()
        assert kb.action_for(KeyEvent.control(0x13)) == "save"
        assert kb.action_for(KeyEvent.control(0x11)) == "quit"
        assert kb.action_for(KeyEvent.control(0x0C)) == "selectLine"
        assert kb.action_for(KeyEvent.control(0x01)) == "selectAll"

    def test_named_keys(self):
        kb = editor_keybindings()
        assert kb.action_for(ESCAPE) == "cancelSelection"
        assert kb.action_for(ENTER) == "newLine"

    def test_printable_unbound(self):
        assert editor_keybindings().action_for(KeyEvent.printable("q")) is None


# ---------------------------------------------------------------------------
# KeybindingsManager
# ---------------------------------------------------------------------------


class TestKeybindingsManager:
    def test_config_overrides_action(self):
        kb = pager_keybindings({"quit": "x"})
        assert kb.matches(KeyEvent.printable("x"), "quit")
        assert not kb.matches(KeyEvent.printable("q"), "quit")

    def test_config_accepts_list(self):
        kb = editor_keybindings({"save": [Key.ctrl("s"), Key.ctrl("w")]})
        assert kb.get_keys("save") == ["ctrl+s", "ctrl+w"]

    def test_unknown_actions_ignored(self):
        kb = pager_keybindings({"launchRockets": "l"})
        assert kb.action_for(KeyEvent.printable("l")) is None

    def test_set_config_rebuilds_from_defaults(self):
        kb = pager_keybindings({"quit": "x"})
        kb.set_config({})
        assert kb.matches(KeyEvent.printable("q"), "quit")

    def test_unbound_action(self):
        kb = KeybindingsManager({"only": "a"})
        assert kb.get_keys("missing") == []
        assert not kb.matches(KeyEvent.printable("a"), "missing")
