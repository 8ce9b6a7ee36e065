"""Text helpers for writing dictionary data: widths, trimming, headword tests."""

from __future__ import annotations

from wcwidth import wcwidth

_ASCII_SPACE = frozenset(" \t\n\v\f\r")
# Unicode characters Python calls whitespace that are not treated as spaces
# here: information separators, NEL and the no-break spaces.
_NOT_SPACE = frozenset("\x1c\x1d\x1e\x1f\x85\xa0\u2007\u202f")


def _is_space(ch: str) -> bool:
    if ch in _ASCII_SPACE:
        return True
    return ord(ch) > 127 and ch not in _NOT_SPACE and ch.isspace()


def text_width(s, utf8=False) -> int:
    """Return the number of terminal columns ``s`` takes.

    Without ``utf8`` every character (or byte) counts as one column.  In
    ``utf8`` mode characters are measured by their display width and
    non-printable characters count as one column; text that is not valid
    UTF-8 raises ``ValueError``.
    """
    if not utf8:
        return len(s)
    if isinstance(s, (bytes, bytearray)):
        s = bytes(s).decode("utf-8")
    elif any("\udc80" <= ch <= "\udcff" for ch in s):
        raise ValueError(f"{s!r} is not a valid utf-8 string")
    total = 0
    for ch in s:
        width = wcwidth(ch)
        total += 1 if width < 0 else width
    return total


def trim_left(s: str) -> str:
    """Remove whitespace at the beginning of ``s``."""
    pos = 0
    while pos < len(s) and _is_space(s[pos]):
        pos += 1
    return s[pos:]


def trim_right(s: str) -> str:
    """Remove whitespace at the end of ``s``."""
    end = len(s)
    while end > 0 and _is_space(s[end - 1]):
        end -= 1
    return s[:end]


def trim_center(s: str) -> str:
    """Keep only the first character of every run of whitespace."""
    out = []
    previous_space = False
    for ch in s:
        space = _is_space(ch)
        if not (space and previous_space):
            out.append(ch)
        previous_space = space
    return "".join(out)


def trim_lcr(s: str) -> str:
    """Collapse inner whitespace runs and strip both ends."""
    return trim_left(trim_right(trim_center(s)))


def is_headword_special(word) -> bool:
    """True for the reserved ``00-database...`` headwords."""
    return word.startswith("00-database") or word.startswith("00database")


def contains_non_ascii(word) -> bool:
    """True if ``word`` (``str`` or ``bytes``) holds a non-ASCII character."""
    if not word:
        return False
    if isinstance(word, (bytes, bytearray)):
        return any(byte > 127 for byte in word)
    return any(ord(ch) > 127 for ch in word)