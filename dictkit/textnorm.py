"""Headword normalisation and the base64 number encoding used in index files."""

from __future__ import annotations

import string

_ASCII_SPACE = frozenset(" \t\n\v\f\r")
_ASCII_ALNUM = frozenset(string.ascii_letters + string.digits)
_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)

B64_ALPHABET = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
)
_B64_INDEX = {ch: i for i, ch in enumerate(B64_ALPHABET)}
_B64_DIGITS = 6
_B64_LIMIT = 1 << (6 * _B64_DIGITS)


def _normalise_8bit(src: str, allchars: bool, case_sensitive: bool) -> str:
    out = []
    for ch in src:
        if ch in _ASCII_SPACE:
            out.append(" ")
        elif allchars or ch in _ASCII_ALNUM:
            out.append(ch if case_sensitive else ch.translate(_ASCII_LOWER))
    return "".join(out)


def _lower_char(ch: str) -> str:
    lowered = ch.lower()
    # A wide-character lowercase maps one character to exactly one.
    return lowered if len(lowered) == 1 else ch


def _normalise_unicode(src: str, allchars: bool, case_sensitive: bool) -> str:
    out = []
    for ch in src:
        if ch.isspace():
            out.append(" ")
        elif allchars or ch.isalnum():
            out.append(ch if case_sensitive else _lower_char(ch))
    return "".join(out)


def tolower_alnumspace(src, allchars=False, case_sensitive=False, utf8=False):
    """Keep alphanumerics and spaces of ``src``, lowercased.

    Every whitespace character becomes a single space.  With ``allchars``
    all other characters are kept too; with ``case_sensitive`` the case is
    left alone.  Without ``utf8`` only ASCII letters and digits count as
    alphanumeric.  ``src`` may be ``str`` or ``bytes``; the result has the
    same type.  Bytes that are not valid UTF-8 in ``utf8`` mode raise
    ``ValueError``.
    """
    if isinstance(src, (bytes, bytearray)):
        encoding = "utf-8" if utf8 else "latin-1"
        text = bytes(src).decode(encoding)
        return tolower_alnumspace(text, allchars, case_sensitive, utf8).encode(
            encoding
        )
    if utf8:
        return _normalise_unicode(src, allchars, case_sensitive)
    return _normalise_8bit(src, allchars, case_sensitive)


def strlwr_8bit(s):
    """Lowercase the ASCII letters of ``s`` (``str`` or ``bytes``)."""
    if isinstance(s, (bytes, bytearray)):
        return bytes(s).lower()
    return s.translate(_ASCII_LOWER)


def b64_encode(value: int) -> str:
    """Encode a non-negative integer in the index base64 notation.

    Leading zero digits are dropped, but at least one digit is written.
    """
    if value < 0 or value >= _B64_LIMIT:
        raise ValueError(f"value out of range for base64 encoding: {value}")
    digits = []
    for _ in range(_B64_DIGITS):
        value, rem = divmod(value, 64)
        digits.append(B64_ALPHABET[rem])
    encoded = "".join(reversed(digits)).lstrip("A")
    return encoded or "A"


def b64_decode(text: str) -> int:
    """Decode a number written in the index base64 notation."""
    result = 0
    for ch in text:
        try:
            result = result * 64 + _B64_INDEX[ch]
        except KeyError:
            raise ValueError(f"illegal character in base64 value: {ch!r}") from None
    return result