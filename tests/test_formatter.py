import io
import time

import pytest

from dictkit.formatter import (
    DictWriter,
    FormatError,
    FormatOptions,
    sort_index_lines,
)
from dictkit.textnorm import b64_decode, b64_encode, tolower_alnumspace


def _make(sink=None, **kwargs):
    opts = FormatOptions(quiet=True, **kwargs)
    buf = io.BytesIO()
    return DictWriter(buf, sink, opts), buf


def _records(writer, buf):
    data = buf.getvalue()
    out = {}
    for line in writer.index_lines:
        fields = line.split("\t")
        start = b64_decode(fields[1])
        size = b64_decode(fields[2])
        extra = fields[3] if len(fields) > 3 else None
        out.setdefault(fields[0], []).append((data[start:start + size], extra))
    return out


def _key(word):
    return tolower_alnumspace(word)


def test_wrapping_keeps_lines_within_columns():
    writer, buf = _make(columns=10)
    words = ["aaaa", "bbbb", "cccc", "dd", "eeeeee"]
    writer.write_string(" ".join(words))
    writer.newline()
    lines = buf.getvalue().decode().rstrip("\n").split("\n")
    assert len(lines) > 1
    assert all(len(line) <= 10 for line in lines)
    assert " ".join(lines).split() == words


def test_zero_columns_disables_wrapping():
    writer, buf = _make(columns=0)
    writer.write_string(" ".join(["word"] * 60))
    assert b"\n" not in buf.getvalue()


def test_headword_entries_point_at_their_data():
    writer, buf = _make()
    writer.new_headword("Apple")
    writer.write_string("a fruit")
    writer.newline()
    writer.new_headword("Banana")
    writer.write_string("yellow")
    writer.newline()
    writer.close()
    records = _records(writer, buf)
    assert records["apple"][0][0] == b"Apple\na fruit\n"
    assert records["banana"][0][0] == b"Banana\nyellow\n"


def test_without_headword_omits_headword_text():
    writer, buf = _make(without_hw=True)
    writer.new_headword("Apple")
    writer.write_string("fruit")
    writer.newline()
    writer.close()
    assert _records(writer, buf)["apple"][0][0] == b"fruit\n"


def test_url_entry_holds_url():
    url = "http://example.com/dict"
    writer, buf = _make(url=url, without_info=True)
    writer.predefined_before()
    writer.close()
    records = _records(writer, buf)
    assert records[_key("00-database-url")][0][0] == (url + "\n").encode()


def test_short_name_entry():
    writer, buf = _make(short_name="Test Dict", without_info=True)
    writer.predefined_before()
    writer.close()
    record = _records(writer, buf)[_key("00-database-short")][0][0]
    assert record == b"00-database-short\n     Test Dict\n"


def test_url_written_only_once():
    writer, buf = _make(url="http://example.com/dict", short_name="Name")
    writer.predefined_before()
    writer.new_headword("word")
    writer.predefined_after()
    writer.close()
    records = _records(writer, buf)
    assert len(records[_key("00-database-url")]) == 1
    assert len(records[_key("00-database-short")]) == 1


def test_version_entry():
    writer, buf = _make(without_info=True)
    writer.predefined_before()
    writer.close()
    word = f"00-database-dictfmt-{writer.options.version}"
    assert _records(writer, buf)[_key(word)][0][0] == (word + "\n").encode()


def test_default_strategy_entry():
    writer, buf = _make(default_strategy="lev", without_info=True)
    writer.predefined_before()
    writer.close()
    records = _records(writer, buf)
    assert records[_key("00-database-default-strategy")][0][0] == b"lev\n"


def test_info_entry_contains_time_and_url():
    url = "http://example.com/dict"
    writer, buf = _make(timestamp=0, url=url)
    writer.predefined_before()
    writer.close()
    record = _records(writer, buf)[_key("00-database-info")][0][0]
    assert time.ctime(0).encode() in record
    assert url.encode() in record
    assert b"restrictions" in record


def test_without_info_skips_info_entry():
    writer, buf = _make(without_info=True)
    writer.predefined_before()
    writer.close()
    assert _key("00-database-info") not in _records(writer, buf)


def test_mime_header_is_not_wrapped():
    header = "Content-Type: text/plain; charset=utf-8"
    writer, buf = _make(columns=5, mime_header=header, without_info=True)
    writer.predefined_before()
    writer.close()
    record = _records(writer, buf)[_key("00-database-mime-header")][0][0]
    assert record == (header + "\n").encode()


def test_alphabet_entry_lists_sorted_characters():
    writer, buf = _make(without_info=True)
    writer.new_headword("cab")
    writer.new_headword("bac")
    writer.predefined_after()
    writer.close()
    record = _records(writer, buf)[_key("00-database-alphabet")][0][0]
    assert record == b"abc\n"


def test_headword_separator_gives_shared_entries():
    writer, buf = _make(hw_separator="%%%")
    writer.new_headword("autumn%%%fall")
    writer.write_string("season")
    writer.newline()
    writer.close()
    records = _records(writer, buf)
    assert records["autumn"][0][0] == records["fall"][0][0]
    assert records["autumn"][0][0].startswith(b"autumn%%%fall\n")


def test_break_headwords_puts_each_on_its_own_line():
    writer, buf = _make(hw_separator="%%%", break_headwords=True)
    writer.new_headword("autumn%%%fall")
    writer.close()
    assert buf.getvalue() == b"autumn\nfall\n"


def test_index_data_separator_sets_fourth_column():
    writer, buf = _make()
    writer.new_headword("word\x1cShown")
    writer.close()
    assert _records(writer, buf)["word"][0][1] == "Shown"


def test_index_keep_orig_stores_original_headword():
    writer, buf = _make(index_keep_orig=True)
    writer.new_headword("Hello World")
    writer.close()
    assert _records(writer, buf)["hello world"][0][1] == "Hello World"


def test_non_ascii_headword_rejected_without_utf8():
    writer, _ = _make()
    with pytest.raises(FormatError):
        writer.new_headword("caf\u00e9")


def test_utf8_headword_lowercased():
    writer, buf = _make(utf8=True)
    writer.new_headword("\u00c4rger")
    writer.close()
    records = _records(writer, buf)
    assert records["\u00e4rger"][0][0] == "\u00c4rger\n".encode("utf-8")


def test_index_only_mode():
    writer, buf = _make(index_only=True)
    writer.predefined_before()
    writer.write_index_entry("Foo", None, 10, 15)
    lines = writer.close()
    assert buf.getvalue() == b""
    assert lines == [f"foo\t{b64_encode(10)}\t{b64_encode(5)}"]


def test_close_writes_sorted_index_to_sink():
    sink = io.StringIO()
    writer, _ = _make(sink=sink)
    for word in ("zeta", "Alpha", "mid"):
        writer.new_headword(word)
    writer.close()
    keys = [line.split("\t")[0] for line in sink.getvalue().splitlines()]
    assert keys == sorted(keys)
    assert set(keys) == {"zeta", "alpha", "mid"}
    assert writer.headword_count == 3


def test_sort_dictionary_order_ignores_punctuation_and_case():
    lines = ["b\tA\tB", "A-c\tA\tB", "a\tA\tB"]
    result = sort_index_lines(lines, FormatOptions())
    assert result == ["a\tA\tB", "A-c\tA\tB", "b\tA\tB"]


def test_sort_is_stable():
    lines = ["Ab\t1", "ab\t2", "AB\t3"]
    assert sort_index_lines(lines, FormatOptions()) == lines


def test_sort_bytewise_in_utf8_mode():
    lines = ["b\t1", "B\t2", "a\t3"]
    result = sort_index_lines(lines, FormatOptions(utf8=True))
    assert result == ["B\t2", "a\t3", "b\t1"]