"""Terminal text utilities: width measurement, truncation and word wrapping.

Widths are measured in terminal cells per grapheme cluster, so wide CJK
characters count as two columns and combining marks as none.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

# SGR and the other CSI sequences the renderer emits
_STRIP_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Grapheme width
# ---------------------------------------------------------------------------


def _grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster.

    Rules:
    1. Control characters and lone combining marks -> 0
    2. Emoji sequences (VS16, ZWJ, skin tones, regional indicators) -> 2
    3. Otherwise delegate to wcwidth for the first codepoint.
    """
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        if cp in (0xFE0F, 0x200D):
            return 2
        if 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first = g[0]
    if ord(first) >= 0x1F000:
        return 2
    if unicodedata.category(first).startswith("M"):
        return 0
    return max(_wcwidth.wcwidth(first), 0)


# ---------------------------------------------------------------------------
# visible_width
# ---------------------------------------------------------------------------


def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*, ignoring ANSI codes."""
    if not text:
        return 0

    stripped = _STRIP_RE.sub("", text)
    if not stripped:
        return 0

    if all(0x20 <= ord(ch) <= 0x7E for ch in stripped):
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(_grapheme_width(g) for g in grapheme.graphemes(stripped))
    return _cache_width(stripped, total)


def display_char(ch: str) -> str:
    """Return what to draw for *ch*: tabs become a space, other controls ``?``."""
    if ch == "\t":
        return " "
    cp = ord(ch)
    if cp < 0x20 or 0x7F <= cp <= 0x9F:
        return "?"
    return ch


def sanitize(text: str) -> str:
    """Make *text* safe to write as-is: tabs expand, other controls become ``?``."""
    text = text.expandtabs(4)
    if text.isprintable():
        return text
    return "".join(display_char(ch) for ch in text)


def char_width(ch: str) -> int:
    """Width of a single buffer character as the editor draws it."""
    return _grapheme_width(display_char(ch))


# ---------------------------------------------------------------------------
# truncate_to_width
# ---------------------------------------------------------------------------


def take_columns(text: str, max_cols: int) -> str:
    """Return the longest grapheme-aligned prefix of *text* within *max_cols*."""
    result: list[str] = []
    cols = 0
    for g in grapheme.graphemes(text):
        w = _grapheme_width(g)
        if cols + w > max_cols:
            break
        result.append(g)
        cols += w
    return "".join(result)


def truncate_to_width(text: str, max_width: int, ellipsis: str = "…") -> str:
    """Truncate plain *text* to *max_width* columns, ending with *ellipsis* when cut.

    The ellipsis counts towards the width.
    """
    if max_width <= 0:
        return ""
    if visible_width(text) <= max_width:
        return text

    target_width = max_width - visible_width(ellipsis)
    if target_width <= 0:
        return take_columns(ellipsis, max_width)
    return take_columns(text, target_width) + ellipsis


# ---------------------------------------------------------------------------
# wrap_words
# ---------------------------------------------------------------------------


def _split_word(word: str, width: int) -> list[str]:
    """Hard-split *word* into chunks of at most *width* columns."""
    chunks: list[str] = []
    current: list[str] = []
    current_width = 0
    for g in grapheme.graphemes(word):
        w = _grapheme_width(g)
        if current and current_width + w > width:
            chunks.append("".join(current))
            current = []
            current_width = 0
        current.append(g)
        current_width += w
    if current:
        chunks.append("".join(current))
    return chunks


def wrap_words(text: str, width: int) -> list[str]:
    """Greedily pack the words of *text* into rows of at most *width* columns.

    Words are separated by single spaces in the output. A word wider than
    *width* is hard-split into fixed-width chunks. Always returns at least
    one row.
    """
    width = max(width, 1)
    rows: list[str] = []
    current = ""
    current_width = 0

    for word in text.split():
        word_width = visible_width(word)
        if word_width > width:
            if current:
                rows.append(current)
            chunks = _split_word(word, width)
            rows.extend(chunks[:-1])
            current = chunks[-1]
            current_width = visible_width(current)
            continue

        if not current:
            current, current_width = word, word_width
        elif current_width + 1 + word_width <= width:
            current += " " + word
            current_width += 1 + word_width
        else:
            rows.append(current)
            current, current_width = word, word_width

    if current or not rows:
        rows.append(current)
    return rows
