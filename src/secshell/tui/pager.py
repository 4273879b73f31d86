"""Scrollable content pager with incremental, case-insensitive search.

The pager shows an immutable sequence of lines one page at a time. It has two
modes: *navigate*, where single keys page, jump between matches and toggle
help or word wrap, and *search*, where typed characters build a query that is
committed with Enter.
"""

from __future__ import annotations

import bisect
import logging
import sys
from dataclasses import dataclass, field
from typing import IO, Literal, Sequence

from secshell.tui.config import TuiSettings
from secshell.tui.errors import FileError, InputError, ValidationError
from secshell.tui.keybindings import KeybindingsManager, PagerAction, pager_keybindings
from secshell.tui.keys import KeyEvent, KeyReader
from secshell.tui.render import CYAN, YELLOW, Frame, colored, highlight_matches
from secshell.tui.terminal import Session, TerminalSession
from secshell.tui.utils import sanitize, truncate_to_width, visible_width, wrap_words

logger = logging.getLogger(__name__)

PagerMode = Literal["navigate", "search"]
QuitReason = Literal["user", "input-closed"]

# none: nothing to draw; status: status row only; redraw: every row, no
# clear; full: clear the screen then every row.
Update = Literal["none", "status", "redraw", "full", "quit"]

HELP_TEXT = "Commands: q:quit, /:search, n:next, N/p:prev, c:clear, w:wrap, h:help"

_GUTTER = "  "
_GUTTER_CURRENT = "→ "

# Rows reserved below the page: one blank separator, one status line.
_RESERVED_ROWS = 2


# ---------------------------------------------------------------------------
# PagerState
# ---------------------------------------------------------------------------


@dataclass
class PagerState:
    """Pagination and search model.

    ``page_size`` is the number of screen rows a page may fill. Each item
    takes one row unless ``item_heights`` gives its wrapped height; pages are
    then packed greedily, always with at least one item, so an item taller
    than a page sits alone on its page and is clipped.

    ``search_query`` is the last committed query and drives highlighting and
    ``search_matches``; ``search_input`` is the query being typed in search
    mode.
    """

    items: Sequence[str]
    page_size: int
    current_page: int = 0
    search_query: str = ""
    search_input: str = ""
    search_matches: list[int] = field(default_factory=list)
    current_match: int = -1
    mode: PagerMode = "navigate"
    wrap_text: bool = False
    show_help: bool = False
    item_heights: Sequence[int] | None = None
    _page_starts: list[int] = field(init=False, repr=False, default_factory=list)

    def __post_init__(self) -> None:
        self.items = tuple(self.items)
        self.page_size = max(1, self.page_size)
        self._layout()
        self.current_page = self._clamp(self.current_page)

    @property
    def total_pages(self) -> int:
        return len(self._page_starts)

    @property
    def current_match_item(self) -> int | None:
        """Item index of the current match, or ``None``."""
        if self.current_match < 0:
            return None
        return self.search_matches[self.current_match]

    def _clamp(self, page: int) -> int:
        return min(max(page, 0), self.total_pages - 1)

    def _layout(self) -> None:
        if self.item_heights is None:
            self._page_starts = list(range(0, len(self.items), self.page_size)) or [0]
            return
        starts = [0]
        used = 0
        for index, height in enumerate(self.item_heights):
            height = max(height, 1)
            if used and used + height > self.page_size:
                starts.append(index)
                used = 0
            used += height
        self._page_starts = starts

    def page_of(self, item: int) -> int:
        """Index of the page holding *item*."""
        return self._clamp(bisect.bisect_right(self._page_starts, item) - 1)

    # -- paging --------------------------------------------------------------

    def go_to_page(self, page: int) -> bool:
        """Move to *page* (clamped). Returns ``True`` if the page changed."""
        target = self._clamp(page)
        changed = target != self.current_page
        self.current_page = target
        return changed

    def next_page(self) -> bool:
        return self.go_to_page(self.current_page + 1)

    def prev_page(self) -> bool:
        return self.go_to_page(self.current_page - 1)

    def first_page(self) -> bool:
        return self.go_to_page(0)

    def last_page(self) -> bool:
        return self.go_to_page(self.total_pages - 1)

    def page_items(self) -> list[tuple[int, str]]:
        """``(item index, text)`` pairs on the current page."""
        start = self._page_starts[self.current_page]
        if self.current_page + 1 < self.total_pages:
            end = self._page_starts[self.current_page + 1]
        else:
            end = len(self.items)
        return list(enumerate(self.items[start:end], start))

    def resize(self, page_size: int, item_heights: Sequence[int] | None = None) -> None:
        """Re-paginate for *page_size* rows, keeping the first visible item on screen.

        *item_heights* replaces the per-item row counts; ``None`` means one
        row per item.
        """
        first_item = self._page_starts[self.current_page]
        self.page_size = max(1, page_size)
        self.item_heights = item_heights
        self._layout()
        self.current_page = self.page_of(first_item)

    # -- search --------------------------------------------------------------

    def search(self, query: str) -> list[int]:
        """Commit *query* and collect matching item indices in order.

        Jumps to the page of the first match. A search with no matches leaves
        the page unchanged.
        """
        if not query:
            raise ValidationError("empty search query")
        needle = query.casefold()
        self.search_query = query
        self.search_matches = [
            i for i, item in enumerate(self.items) if needle in item.casefold()
        ]
        self.current_match = -1
        if self.search_matches:
            self.current_match = 0
            self._show_current_match()
        return self.search_matches

    def next_match(self) -> bool:
        if not self.search_matches:
            return False
        self.current_match = (self.current_match + 1) % len(self.search_matches)
        self._show_current_match()
        return True

    def prev_match(self) -> bool:
        if not self.search_matches:
            return False
        count = len(self.search_matches)
        self.current_match = (self.current_match - 1 + count) % count
        self._show_current_match()
        return True

    def clear_search(self) -> None:
        self.search_query = ""
        self.search_matches = []
        self.current_match = -1

    def _show_current_match(self) -> None:
        self.current_page = self.page_of(self.search_matches[self.current_match])


# ---------------------------------------------------------------------------
# Pager application
# ---------------------------------------------------------------------------


class Pager:
    """Interactive pager over *items* on *session*.

    The terminal size is queried on construction so that a broken terminal
    is reported before anything is drawn.
    """

    def __init__(
        self,
        session: Session,
        items: Sequence[str],
        *,
        settings: TuiSettings | None = None,
        keybindings: KeybindingsManager[PagerAction] | None = None,
    ) -> None:
        self._session = session
        settings = settings or TuiSettings()
        self._keys = keybindings or pager_keybindings(settings.pager_keybindings)
        self._reader = KeyReader(session, escape_timeout=settings.escape_timeout)
        self.state = PagerState(
            items=[sanitize(item) for item in items],
            page_size=1,
            wrap_text=settings.wrap_text,
        )
        self.relayout()

    def relayout(self) -> None:
        """Fit pages to the terminal, counting wrapped rows when wrap is on."""
        columns, rows = self._session.get_size()
        heights = None
        if self.state.wrap_text:
            width = max(columns - len(_GUTTER), 1)
            heights = [len(wrap_words(item, width)) for item in self.state.items]
        self.state.resize(rows - _RESERVED_ROWS, heights)

    # -- main loop -----------------------------------------------------------

    def run(self) -> QuitReason:
        """Run until the user quits or input closes. The terminal is always restored."""
        with self._session.interactive():
            self.render_frame("full").flush(self._session)
            while True:
                try:
                    event = self._reader.read_key()
                except InputError as exc:
                    logger.info("pager input closed: %s", exc)
                    return "input-closed"
                update = self.handle_key(event)
                if update == "quit":
                    logger.debug("pager quit by user")
                    return "user"
                if update != "none":
                    self.render_frame(update).flush(self._session)

    # -- key handling --------------------------------------------------------

    def handle_key(self, event: KeyEvent) -> Update:
        if event.kind == "resize":
            self.relayout()
            return "full"
        if self.state.mode == "search":
            return self._handle_search_key(event)
        return self._handle_navigate_key(event)

    def _handle_navigate_key(self, event: KeyEvent) -> Update:
        state = self.state
        action = self._keys.action_for(event)

        if action == "quit":
            return "quit"
        if action == "search":
            state.mode = "search"
            state.search_input = ""
            state.show_help = False
            return "full"
        if action == "nextMatch" or action == "prevMatch":
            page = state.current_page
            moved = state.next_match() if action == "nextMatch" else state.prev_match()
            if not moved:
                return "none"
            return "full" if state.current_page != page else "redraw"
        if action == "clearSearch":
            state.clear_search()
            return "redraw"
        if action == "toggleHelp":
            state.show_help = not state.show_help
            return "status"
        if action == "toggleWrap":
            state.wrap_text = not state.wrap_text
            self.relayout()
            return "full"

        paging = {
            "prevPage": state.prev_page,
            "nextPage": state.next_page,
            "firstPage": state.first_page,
            "lastPage": state.last_page,
        }
        if action in paging:
            return "full" if paging[action]() else "none"
        return "none"

    def _handle_search_key(self, event: KeyEvent) -> Update:
        state = self.state

        if event.kind == "enter":
            state.mode = "navigate"
            try:
                matches = state.search(state.search_input)
            except ValidationError:
                logger.debug("ignoring empty search query")
            else:
                logger.debug("search %r matched %d items", state.search_query, len(matches))
            return "full"
        if event.kind == "escape":
            state.mode = "navigate"
            return "full"
        if event.kind == "backspace":
            state.search_input = state.search_input[:-1]
            if not state.search_input:
                state.mode = "navigate"
                state.clear_search()
                return "full"
            return "status"
        if event.kind == "printable" and 0x20 <= ord(event.char) <= 0x7E:
            state.search_input += event.char
            return "status"
        return "none"

    # -- rendering -----------------------------------------------------------

    def render_frame(self, update: Update) -> Frame:
        columns, rows = self._session.get_size()
        frame = Frame(full_clear=update == "full")
        if update in ("redraw", "full"):
            self._draw_body(frame, columns, rows)
        frame.line(rows - 1, self._status_line(columns))
        if self.state.mode == "search":
            col = min(visible_width("/" + self.state.search_input), columns - 1)
            frame.place_cursor(rows - 1, col)
        return frame

    def _draw_body(self, frame: Frame, columns: int, rows: int) -> None:
        state = self.state
        body_rows = max(rows - _RESERVED_ROWS, 1)
        content_width = max(columns - len(_GUTTER), 1)
        current_item = state.current_match_item
        query = state.search_query

        row = 0
        for index, item in state.page_items():
            if state.wrap_text:
                pieces = wrap_words(item, content_width)
            else:
                pieces = [truncate_to_width(item, content_width)]
            for n, piece in enumerate(pieces):
                if row >= body_rows:
                    break
                gutter = _GUTTER_CURRENT if n == 0 and index == current_item else _GUTTER
                frame.line(row, gutter + highlight_matches(piece, query))
                row += 1
        while row < rows - 1:
            frame.line(row, "")
            row += 1

    def _status_line(self, columns: int) -> str:
        state = self.state
        if state.mode == "search":
            query = truncate_to_width(state.search_input, max(columns - 1, 0))
            return "/" + colored(query, CYAN)
        if state.show_help:
            return colored(truncate_to_width(HELP_TEXT, columns), YELLOW)

        parts = [f"Page {state.current_page + 1}/{state.total_pages}"]
        if state.search_query:
            parts.append(f"Match {state.current_match + 1}/{len(state.search_matches)}")
        parts.append(f"wrap {'on' if state.wrap_text else 'off'}")
        return truncate_to_width(f"-- {', '.join(parts)} (h for help) --", columns)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def read_lines(stream: IO[str]) -> list[str]:
    """Read *stream* into pager items, one per line, tabs expanded."""
    return [line.rstrip("\r\n").expandtabs(4) for line in stream]


def load_items(path: str) -> list[str]:
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return read_lines(f)
    except OSError as exc:
        raise FileError(f"failed to open file {path}: {exc}", path) from exc


def page_items(
    items: Sequence[str],
    *,
    session: Session | None = None,
    settings: TuiSettings | None = None,
) -> QuitReason:
    """Page *items* and return once the user quits. Empty input shows nothing."""
    if not items:
        return "user"
    if session is not None:
        return Pager(session, items, settings=settings).run()
    terminal = TerminalSession.open()
    try:
        return Pager(terminal, items, settings=settings).run()
    finally:
        terminal.close()


def run_more(
    args: Sequence[str],
    *,
    session: Session | None = None,
    settings: TuiSettings | None = None,
    stdin: IO[str] | None = None,
) -> None:
    """``more`` command: page each file in *args* in turn, or stdin.

    ``< file`` pages that single file, as shells that pass the redirection
    through verbatim do. Quitting moves on to the next file; closed input
    stops paging altogether.
    """
    if args and args[0] == "<":
        args = args[1:2]
    if not args:
        items = read_lines(stdin if stdin is not None else sys.stdin)
        page_items(items, session=session, settings=settings)
        return

    for path in args:
        reason = page_items(load_items(path), session=session, settings=settings)
        if reason == "input-closed":
            return
