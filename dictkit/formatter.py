"""Writing dictionary data files and their index entries."""

from __future__ import annotations

import string
import sys
import time
from dataclasses import dataclass
from typing import BinaryIO, Iterable, List, Optional, TextIO

from dictkit.fmttext import (
    contains_non_ascii,
    is_headword_special,
    text_width,
    trim_center,
    trim_lcr,
)
from dictkit.textnorm import b64_encode, tolower_alnumspace

DEFAULT_COLUMNS = 72
UNKNOWN = "unknown"
_UNLIMITED = sys.maxsize

_INFO_NOTICE = (
    "The original data was distributed with the notice shown below."
    " No additional restrictions are claimed.  Please redistribute"
    " this changed version under the same conditions and restriction"
    " that apply to the original version."
)

# Special headwords that may appear only once; later ones are dropped.
_ONCE_ONLY = {
    "00-database-default-strategy": "strategy",
    "00databasedefaultstrategy": "strategy",
    "00-database-url": "url",
    "00databaseurl": "url",
    "00-database-short": "short",
    "00databaseshort": "short",
    "00-database-info": "info",
    "00databaseinfo": "info",
}

_DICTIONARY_ORDER = frozenset(
    (string.ascii_letters + string.digits + " \t").encode("ascii")
)


class FormatError(Exception):
    """Raised when the input cannot be turned into a dictionary database."""


@dataclass
class FormatOptions:
    """Settings that control how a dictionary database is written."""

    utf8: bool = False
    allchars: bool = False
    case_sensitive: bool = False
    quiet: bool = False
    index_keep_orig: bool = False
    index_only: bool = False
    dictfmt_ver: bool = True
    hw_separator: str = ""
    idxdat_separator: Optional[str] = "\x1c"
    without_hw: bool = False
    without_header: bool = False
    without_url: bool = False
    without_time: bool = False
    without_info: bool = False
    break_headwords: bool = False
    columns: int = DEFAULT_COLUMNS
    default_strategy: Optional[str] = None
    mime_header: Optional[str] = None
    url: Optional[str] = None
    short_name: Optional[str] = None
    timestamp: Optional[float] = None
    version: str = "2.0.0"

    @property
    def encoding(self) -> str:
        """Encoding of the data and index files."""
        return "utf-8" if self.utf8 else "latin-1"


def _sort_key(line: str, options: FormatOptions) -> bytes:
    field = line.split("\t", 1)[0].encode(options.encoding, "surrogateescape")
    if options.utf8 or options.allchars:
        return field
    return bytes(b for b in field if b in _DICTIONARY_ORDER).upper()


def sort_index_lines(lines: Iterable[str], options: FormatOptions) -> List[str]:
    """Sort index lines stably by their first tab-separated field.

    Fields are compared byte by byte.  Unless ``utf8`` or ``allchars`` is
    set, only letters, digits and blanks count and case is ignored.
    """
    return sorted(lines, key=lambda line: _sort_key(line, options))


class DictWriter:
    """Writes definitions to a data stream and collects index entries.

    ``data_stream`` is a binary stream (or None to write no data);
    ``index_sink`` is a text stream that receives the sorted index when the
    writer is closed (or None).
    """

    def __init__(
        self,
        data_stream: Optional[BinaryIO] = None,
        index_sink: Optional[TextIO] = None,
        options: Optional[FormatOptions] = None,
    ):
        self.options = options if options is not None else FormatOptions()
        self._data = data_stream
        self._index_sink = index_sink
        self.index_lines: List[str] = []
        self.headword_count = 0
        self.position = 0
        self._column = 0
        self._pending = False
        self._ignore = False
        columns = self.options.columns
        self._maxpos = columns if columns > 0 else _UNLIMITED
        self._prev = ""
        self._start = 0
        self._seen: set = set()
        self._alphabet: set = set()
        self._sorted: Optional[List[str]] = None

    # -- low-level output -------------------------------------------------

    def _emit(self, text: str) -> None:
        raw = text.encode(self.options.encoding, "surrogateescape")
        self._data.write(raw)
        self.position += len(raw)

    def newline(self) -> None:
        """End the current output line."""
        if self._data is None or self._ignore:
            return
        self._emit("\n")
        self._column = 0
        self._pending = False

    def _wrap_and_print(self, piece: str) -> None:
        try:
            width = text_width(piece, self.options.utf8)
        except (ValueError, UnicodeDecodeError):
            raise FormatError(f"'{piece}' is not a valid utf-8 string") from None
        print_space = 1 if (self._pending or not width) else 0
        if self._column and self._column + print_space + width > self._maxpos:
            self.newline()
        if self._pending or not width:
            self._emit(" ")
            self._column += 1
        if width > 0:
            self._emit(piece)
            self._column += width
            self._pending = True

    def write_string(self, text: str) -> None:
        """Write words of ``text``, wrapping lines at the column limit."""
        if self._data is None or self._ignore:
            return
        *pieces, last = text.split(" ")
        for piece in pieces:
            self._wrap_and_print(piece)
        if last:
            self._wrap_and_print(last)

    # -- index ------------------------------------------------------------

    def _count_headword(self) -> None:
        if not self.options.quiet and self.headword_count and not self.headword_count % 100:
            sys.stderr.write(f"{self.headword_count:10d} headwords\r")
        self.headword_count += 1

    def _normalise(self, word: str) -> str:
        opts = self.options
        return tolower_alnumspace(word, opts.allchars, opts.case_sensitive, opts.utf8)

    def write_index_entry(self, word, data, start, end) -> None:
        """Add an index entry for ``word`` covering bytes ``start``..``end``."""
        if word is None:
            return
        self._count_headword()
        if not word:
            return
        try:
            key = trim_center(self._normalise(word))
        except (ValueError, UnicodeDecodeError):
            raise FormatError(f"'{word}' is not a UTF-8 string") from None
        line = f"{key}\t{b64_encode(start)}\t{b64_encode(end - start)}"
        if data is None and self.options.index_keep_orig and word != key:
            data = word
        if data is not None and not is_headword_special(word):
            line += f"\t{data}"
        self.index_lines.append(line)

    def _split_and_index(self, word: str, start: int, end: int) -> None:
        data = None
        separator = self.options.idxdat_separator
        if separator is not None:
            if separator == "":
                word, data = "", ""
            elif separator in word:
                word, data = word.split(separator, 1)
        hw_separator = self.options.hw_separator
        if hw_separator and not is_headword_special(word):
            parts = word.split(hw_separator)
        else:
            parts = [word]
        for part in parts:
            self.write_index_entry(trim_lcr(part), data, start, end)

    # -- headwords --------------------------------------------------------

    def _is_repeated_special(self, word: Optional[str]) -> bool:
        kind = _ONCE_ONLY.get(word) if word is not None else None
        if kind is None:
            return False
        if kind in self._seen:
            self._ignore = True
            return True
        self._seen.add(kind)
        return False

    def _update_alphabet(self, word: Optional[str]) -> None:
        if word is None or is_headword_special(word):
            return
        try:
            self._alphabet.update(self._normalise(word))
        except (ValueError, UnicodeDecodeError):
            pass

    def new_headword(self, word: Optional[str]) -> None:
        """Start a new entry; ``None`` finishes the last one."""
        if self._is_repeated_special(word):
            return
        self._update_alphabet(word)
        self._ignore = False
        if not self.options.utf8 and contains_non_ascii(word):
            raise FormatError(
                f'8-bit head word "{word}"is encountered while "C" locale is used'
            )
        end = self.position
        if self._prev:
            self._split_and_index(self._prev, self._start, end)
        if word is None:
            return
        self._prev = word
        self._start = end
        if self.options.without_hw or is_headword_special(word):
            return
        rest = word
        separator = self.options.hw_separator
        if separator and self.options.break_headwords:
            *heads, rest = word.split(separator)
            for head in heads:
                self.write_string(head)
                self.newline()
        self.write_string(rest)
        self.newline()

    # -- predefined entries ----------------------------------------------

    def _flag_entry(self, word: str) -> None:
        self.new_headword(word)
        self.newline()

    def _default_strategy_entry(self) -> None:
        if not self.options.default_strategy:
            return
        self.new_headword("00-database-default-strategy")
        self.write_string(self.options.default_strategy)
        self.newline()

    def _mime_header_entry(self) -> None:
        if not self.options.mime_header:
            return
        saved = self._maxpos
        self._maxpos = _UNLIMITED
        self.new_headword("00-database-mime-header")
        self.write_string(self.options.mime_header)
        self.newline()
        self._maxpos = saved

    def _version_entry(self) -> None:
        if not self.options.dictfmt_ver:
            return
        word = f"00-database-dictfmt-{self.options.version}"
        self.new_headword(word)
        self.write_string(word)
        self.newline()

    @property
    def _url(self) -> str:
        return self.options.url if self.options.url is not None else UNKNOWN

    def _url_entry(self) -> None:
        self.new_headword("00-database-url")
        self.write_string(self._url)
        self.newline()
        self._seen.add("url")

    def _short_name_entry(self) -> None:
        name = self.options.short_name
        self.new_headword("00-database-short")
        self.write_string("00-database-short")
        self.newline()
        self.write_string("     ")
        self.write_string(name if name is not None else UNKNOWN)
        self.newline()
        self._seen.add("short")

    def _info_entry(self) -> None:
        opts = self.options
        self.new_headword("00-database-info")
        if not opts.without_time:
            self.write_string("This file was converted from the original database on:")
            self.newline()
            stamp = opts.timestamp if opts.timestamp is not None else time.time()
            self.write_string(" " * 10 + time.ctime(stamp))
            self.newline()
            self.newline()
        if not opts.without_url:
            self.write_string("The original data is available from:")
            self.newline()
            self.write_string("     ")
            self.write_string(self._url)
            self.newline()
            self.newline()
        if not opts.without_header:
            if self._maxpos == _UNLIMITED:
                self._maxpos = DEFAULT_COLUMNS
                self.write_string(_INFO_NOTICE)
                self._maxpos = _UNLIMITED
            else:
                self.write_string(_INFO_NOTICE)
            self.newline()
            self.newline()

    def _alphabet_entry(self) -> None:
        self.new_headword("00-database-alphabet")
        self.write_string("".join(sorted(self._alphabet)))
        self.newline()

    def predefined_before(self) -> None:
        """Write the special entries that precede the input."""
        opts = self.options
        if opts.index_only:
            return
        if opts.utf8:
            self._flag_entry("00-database-utf8")
        if opts.allchars:
            self._flag_entry("00-database-allchars")
        if opts.case_sensitive:
            self._flag_entry("00-database-case-sensitive")
        self._default_strategy_entry()
        self._mime_header_entry()
        self._version_entry()
        if opts.url is not None:
            self._url_entry()
        if opts.short_name is not None:
            self._short_name_entry()
        if not opts.without_info:
            self._info_entry()

    def predefined_after(self) -> None:
        """Write the special entries that follow the input."""
        if self.options.index_only:
            return
        self._url_entry()
        self._short_name_entry()
        self._alphabet_entry()

    def close(self) -> List[str]:
        """Finish the last entry, sort the index and write it out.

        Returns the sorted index lines.
        """
        if self._sorted is not None:
            return self._sorted
        if not self.options.index_only:
            self.new_headword(None)
        self._sorted = sort_index_lines(self.index_lines, self.options)
        if self._index_sink is not None:
            for line in self._sorted:
                self._index_sink.write(line + "\n")
        if not self.options.quiet:
            sys.stderr.write(f"{self.headword_count:12d} headwords\n")
        return self._sorted