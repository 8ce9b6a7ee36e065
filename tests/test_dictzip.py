import gzip
import os
import random
import zlib

import pytest

from dictkit import dictzip
from dictkit.dictzip import (
    DictZipError,
    DictZipReader,
    FileType,
    compress_file,
    format_header,
    read_header,
)


def _payload(size, seed=1):
    rng = random.Random(seed)
    words = [b"alpha", b"beta", b"gamma", b"delta", b"epsilon", b"\n", b" "]
    out = bytearray()
    while len(out) < size:
        out += rng.choice(words)
    return bytes(out[:size])


@pytest.fixture
def make_dz(tmp_path):
    def _make(data, name="words.txt"):
        src = tmp_path / name
        src.write_bytes(data)
        dst = tmp_path / (name + ".dz")
        compress_file(src, dst)
        return src, dst

    return _make


def test_round_trip_small(make_dz):
    data = b"hello world\nsecond line\n"
    _, dst = make_dz(data)
    with DictZipReader(dst) as reader:
        assert reader.read(0, len(data)) == data
        assert reader.read(6, 5) == b"world"
        assert reader.length == len(data)


def test_round_trip_multiple_chunks(make_dz):
    data = _payload(150000)
    _, dst = make_dz(data)
    header = read_header(dst)
    assert header.type is FileType.DZIP
    assert header.chunk_length == dictzip.IN_BUFFER_SIZE
    assert header.chunk_count == -(-len(data) // dictzip.IN_BUFFER_SIZE)
    boundary = dictzip.IN_BUFFER_SIZE
    with DictZipReader(dst) as reader:
        assert reader.read(boundary - 10, 20) == data[boundary - 10:boundary + 10]
        assert reader.read(0, len(data)) == data
        assert reader.read(len(data) - 7, 7) == data[-7:]


def test_output_is_valid_gzip(make_dz):
    data = _payload(70000, seed=5)
    _, dst = make_dz(data)
    assert gzip.decompress(dst.read_bytes()) == data


def test_header_bytes_follow_format(make_dz):
    _, dst = make_dz(b"some text")
    raw = dst.read_bytes()
    assert raw[:4] == b"\x1f\x8b\x08\x0c"
    assert raw[8] == 2
    assert raw[9] == 3
    assert raw[12:14] == b"RA"
    assert raw[16:18] == b"\x01\x00"


def test_header_fields(tmp_path, make_dz):
    data = _payload(1000, seed=3)
    src = tmp_path / "words.txt"
    src.write_bytes(data)
    os.utime(src, (1000000000, 1000000000))
    dst = tmp_path / "words.txt.dz"
    compress_file(src, dst)
    header = read_header(dst)
    assert header.mtime == 1000000000
    assert header.orig_filename == "words.txt"
    assert header.length == len(data)
    assert header.crc == zlib.crc32(data)
    assert header.compressed_length == dst.stat().st_size
    assert header.offsets[0] == header.header_length


def test_empty_file(make_dz):
    _, dst = make_dz(b"", name="empty.txt")
    header = read_header(dst)
    assert header.chunk_count == 0
    assert header.length == 0
    with DictZipReader(dst) as reader:
        assert reader.read(0, 0) == b""
    assert gzip.decompress(dst.read_bytes()) == b""


def test_text_file(tmp_path):
    data = b"plain text data"
    path = tmp_path / "plain.txt"
    path.write_bytes(data)
    header = read_header(path)
    assert header.type is FileType.TEXT
    assert header.length == len(data)
    assert header.crc == zlib.crc32(data)
    with DictZipReader(path) as reader:
        assert reader.read(6, 4) == b"text"


def test_plain_gzip_is_rejected_by_reader(tmp_path):
    path = tmp_path / "data.gz"
    path.write_bytes(gzip.compress(b"content"))
    assert read_header(path).type is FileType.GZIP
    with pytest.raises(DictZipError):
        DictZipReader(path)


def test_read_past_end(make_dz):
    data = b"0123456789"
    _, dst = make_dz(data)
    with DictZipReader(dst) as reader:
        with pytest.raises(DictZipError):
            reader.read(5, 6)
        with pytest.raises(DictZipError):
            reader.read(-1, 2)


def test_truncated_gzip_header(tmp_path):
    path = tmp_path / "bad.dz"
    path.write_bytes(b"\x1f\x8b\x08")
    with pytest.raises(DictZipError):
        read_header(path)


def test_format_header_title_and_text(tmp_path):
    path = tmp_path / "plain.txt"
    path.write_bytes(b"abc")
    line = format_header(read_header(path), True)
    title, body = line.split("\n", 1)
    assert title + "\n" == dictzip.TITLE
    assert body.startswith("text ")
    assert "  0.0% " in body
    assert body.endswith("\n")


def test_format_header_dzip(make_dz):
    data = _payload(5000, seed=9)
    _, dst = make_dz(data)
    header = read_header(dst)
    line = format_header(header, False)
    assert line.startswith("dzip ")
    assert f"{header.crc:08x}" in line
    assert line.endswith(" words.txt\n")
    assert str(header.length) in line
    assert not line.startswith("type")