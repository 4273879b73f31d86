"""Stateless frame rendering primitives.

A :class:`Frame` collects the ANSI output for one screen update and is
flushed with a single write. Applications rebuild the frame from their model
on every update; structural changes start the frame with a full clear, small
updates only rewrite the rows they touch (each row is cleared to end of line
so stale text never survives).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from secshell.tui.terminal import Session

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

CLEAR_SCREEN = "\x1b[2J"
CLEAR_EOL = "\x1b[K"
HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
REVERSE = "\x1b[7m"
RESET = "\x1b[m"
YELLOW = "\x1b[33m"
CYAN = "\x1b[36m"


def move_cursor(row: int, col: int) -> str:
    """Cursor-position sequence for a 0-based *row* and *col*."""
    return f"\x1b[{row + 1};{col + 1}H"


def reverse(text: str) -> str:
    return f"{REVERSE}{text}{RESET}"


def colored(text: str, color: str) -> str:
    return f"{color}{text}{RESET}"


def _match_spans(text: str, query: str) -> list[tuple[int, int]]:
    """Spans of *text* holding caseless matches of *query*.

    Matching runs on the casefolded text, so one character may fold to
    several (``ß`` to ``ss``). Each span covers whole original characters.
    """
    needle = query.casefold()
    owners: list[int] = []
    folded = []
    for index, ch in enumerate(text):
        fold = ch.casefold()
        folded.append(fold)
        owners.extend([index] * len(fold))
    haystack = "".join(folded)

    spans: list[tuple[int, int]] = []
    pos = haystack.find(needle)
    while pos >= 0:
        start = owners[pos]
        end = owners[pos + len(needle) - 1] + 1
        if spans and start < spans[-1][1]:
            spans[-1] = (spans[-1][0], max(end, spans[-1][1]))
        else:
            spans.append((start, end))
        pos = haystack.find(needle, pos + len(needle))
    return spans


def highlight_matches(text: str, query: str) -> str:
    """Wrap every caseless occurrence of *query* in reverse video.

    Uses the same casefold comparison as the pager search, so every item a
    search matches shows a highlight.
    """
    if not query:
        return text
    out = []
    last = 0
    for start, end in _match_spans(text, query):
        out.append(text[last:start])
        out.append(reverse(text[start:end]))
        last = end
    out.append(text[last:])
    return "".join(out)


# ---------------------------------------------------------------------------
# Frame
# ---------------------------------------------------------------------------


class Frame:
    """Output for one screen update."""

    def __init__(self, *, full_clear: bool = False) -> None:
        self.full_clear = full_clear
        self._parts: list[str] = []
        self._cursor: tuple[int, int] | None = None

    def line(self, row: int, text: str) -> None:
        """Draw *text* on screen row *row*, clearing whatever followed it."""
        self._parts.append(move_cursor(row, 0))
        self._parts.append(text)
        self._parts.append(CLEAR_EOL)

    def place_cursor(self, row: int, col: int) -> None:
        """Leave a visible cursor at *row*, *col* once the frame is drawn."""
        self._cursor = (row, col)

    def render(self) -> str:
        out = [HIDE_CURSOR]
        if self.full_clear:
            out.append(CLEAR_SCREEN)
        out.extend(self._parts)
        if self._cursor is not None:
            out.append(move_cursor(*self._cursor))
            out.append(SHOW_CURSOR)
        return "".join(out)

    def flush(self, session: Session) -> None:
        session.write(self.render())
