"""Pager and editor keybindings."""

from __future__ import annotations

from typing import Generic, Literal, Mapping, TypeVar

from secshell.tui.keys import Key, KeyEvent, KeyId

PagerAction = Literal[
    "quit",
    "search",
    "nextMatch",
    "prevMatch",
    "clearSearch",
    "toggleHelp",
    "toggleWrap",
    "prevPage",
    "nextPage",
    "firstPage",
    "lastPage",
]

EditorAction = Literal[
    # Cursor movement
    "cursorUp",
    "cursorDown",
    "cursorLeft",
    "cursorRight",
    "cursorLineStart",
    "cursorLineEnd",
    "pageUp",
    "pageDown",
    # Selection
    "selectUp",
    "selectDown",
    "selectLeft",
    "selectRight",
    "selectLine",
    "selectAll",
    "cancelSelection",
    # Editing
    "deleteCharBackward",
    "deleteCharForward",
    "newLine",
    # File
    "save",
    "quit",
]

A = TypeVar("A", bound=str)

KeybindingsConfig = Mapping[str, KeyId | list[KeyId]]

DEFAULT_PAGER_KEYBINDINGS: dict[PagerAction, KeyId | list[KeyId]] = {
    "quit": ["q", "Q", Key.ctrl("c")],
    "search": "/",
    "nextMatch": "n",
    "prevMatch": ["N", "p", "P"],
    "clearSearch": "c",
    "toggleHelp": ["h", "H"],
    "toggleWrap": "w",
    "prevPage": [Key.up, Key.page_up, "b"],
    "nextPage": [Key.down, Key.page_down, " "],
    "firstPage": [Key.home, "g"],
    "lastPage": [Key.end, "G"],
}

DEFAULT_EDITOR_KEYBINDINGS: dict[EditorAction, KeyId | list[KeyId]] = {
    # Cursor movement
    "cursorUp": Key.up,
    "cursorDown": Key.down,
    "cursorLeft": Key.left,
    "cursorRight": Key.right,
    "cursorLineStart": Key.home,
    "cursorLineEnd": Key.end,
    "pageUp": Key.page_up,
    "pageDown": Key.page_down,
    # Selection
    "selectUp": Key.shift(Key.up),
    "selectDown": Key.shift(Key.down),
    "selectLeft": Key.shift(Key.left),
    "selectRight": Key.shift(Key.right),
    "selectLine": Key.ctrl("l"),
    "selectAll": Key.ctrl("a"),
    "cancelSelection": Key.escape,
    # Editing
    "deleteCharBackward": Key.backspace,
    "deleteCharForward": Key.delete,
    "newLine": Key.enter,
    # File
    "save": Key.ctrl("s"),
    "quit": Key.ctrl("q"),
}


class KeybindingsManager(Generic[A]):
    """Maps actions to key identifiers, with user overrides on top of defaults."""

    def __init__(
        self,
        defaults: Mapping[A, KeyId | list[KeyId]],
        config: KeybindingsConfig | None = None,
    ) -> None:
        self._defaults = dict(defaults)
        self._action_to_keys: dict[A, list[KeyId]] = {}
        self._build_maps(config or {})

    def _build_maps(self, config: KeybindingsConfig) -> None:
        self._action_to_keys.clear()

        for action, keys in self._defaults.items():
            key_array = keys if isinstance(keys, list) else [keys]
            self._action_to_keys[action] = list(key_array)

        # Unknown actions in user config are ignored.
        for action, keys in config.items():
            if action not in self._defaults:
                continue
            key_array = keys if isinstance(keys, list) else [keys]
            self._action_to_keys[action] = list(key_array)  # type: ignore[index]

    def matches(self, event: KeyEvent, action: A) -> bool:
        """Check if *event* is bound to *action*."""
        return event.key_id in self._action_to_keys.get(action, [])

    def action_for(self, event: KeyEvent) -> A | None:
        """Return the first action *event* is bound to, if any."""
        key_id = event.key_id
        for action, keys in self._action_to_keys.items():
            if key_id in keys:
                return action
        return None

    def get_keys(self, action: A) -> list[KeyId]:
        """Get keys bound to an action."""
        return self._action_to_keys.get(action, [])

    def set_config(self, config: KeybindingsConfig) -> None:
        """Update configuration."""
        self._build_maps(config)


def pager_keybindings(config: KeybindingsConfig | None = None) -> KeybindingsManager[PagerAction]:
    return KeybindingsManager(DEFAULT_PAGER_KEYBINDINGS, config)


def editor_keybindings(config: KeybindingsConfig | None = None) -> KeybindingsManager[EditorAction]:
    return KeybindingsManager(DEFAULT_EDITOR_KEYBINDINGS, config)
