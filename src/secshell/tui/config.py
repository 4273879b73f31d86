"""User settings for the pager and editor. Stored at ~/.secshell/tui.json."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from secshell.tui.keybindings import DEFAULT_EDITOR_KEYBINDINGS, DEFAULT_PAGER_KEYBINDINGS

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "SECSHELL_CONFIG_DIR"
CONFIG_FILE_NAME = "tui.json"


@dataclass
class TuiSettings:
    """Pager and editor options.

    Keybinding overrides map an action name to a key id or a list of key
    ids, e.g. ``{"quit": ["q", "ctrl+c"]}``.
    """

    wrap_text: bool = False
    escape_timeout_ms: int = 25
    pager_keybindings: dict[str, str | list[str]] = field(default_factory=dict)
    editor_keybindings: dict[str, str | list[str]] = field(default_factory=dict)

    @property
    def escape_timeout(self) -> float:
        return max(self.escape_timeout_ms, 1) / 1000.0


def get_config_dir() -> Path:
    return Path(os.environ.get(CONFIG_DIR_ENV, Path.home() / ".secshell"))


def get_config_path() -> Path:
    return get_config_dir() / CONFIG_FILE_NAME


def settings_from_dict(data: dict[str, Any]) -> TuiSettings:
    settings = TuiSettings()
    if isinstance(data.get("wrapText"), bool):
        settings.wrap_text = data["wrapText"]
    if isinstance(data.get("escapeTimeoutMs"), int):
        settings.escape_timeout_ms = data["escapeTimeoutMs"]
    keybindings = data.get("keybindings") or {}
    settings.pager_keybindings = _known_bindings(
        keybindings.get("pager"), DEFAULT_PAGER_KEYBINDINGS
    )
    settings.editor_keybindings = _known_bindings(
        keybindings.get("editor"), DEFAULT_EDITOR_KEYBINDINGS
    )
    return settings


def settings_to_dict(settings: TuiSettings) -> dict[str, Any]:
    raw = asdict(settings)
    return {
        "wrapText": raw["wrap_text"],
        "escapeTimeoutMs": raw["escape_timeout_ms"],
        "keybindings": {
            "pager": raw["pager_keybindings"],
            "editor": raw["editor_keybindings"],
        },
    }


def _known_bindings(
    section: Any, defaults: dict[str, Any]
) -> dict[str, str | list[str]]:
    if not isinstance(section, dict):
        return {}
    result: dict[str, str | list[str]] = {}
    for action, keys in section.items():
        if action not in defaults:
            logger.warning("ignoring keybinding for unknown action %r", action)
            continue
        if isinstance(keys, str) or (
            isinstance(keys, list) and all(isinstance(k, str) for k in keys)
        ):
            result[action] = keys
        else:
            logger.warning("ignoring malformed keybinding for %r", action)
    return result


def load_settings(path: Path | None = None) -> TuiSettings:
    """Load settings, falling back to defaults when the file is missing or bad."""
    config_path = path or get_config_path()
    if not config_path.exists():
        return TuiSettings()
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Error reading config %s: %s", config_path, e)
        return TuiSettings()
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is not an object", config_path)
        return TuiSettings()
    return settings_from_dict(data)


def save_settings(settings: TuiSettings, path: Path | None = None) -> None:
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(settings_to_dict(settings), indent=2), encoding="utf-8")
