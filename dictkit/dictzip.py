"""Reading and writing dictzip files: gzip files that allow random access.

A dictzip file is a valid gzip file whose FEXTRA field holds an ``RA``
subfield listing the compressed size of every fixed-length chunk of the
original data.  Each chunk is compressed with a full flush, so any chunk
can be inflated on its own.
"""

from __future__ import annotations

import os
import struct
import time
import zlib
from dataclasses import dataclass, field
from enum import IntEnum
from typing import BinaryIO, Optional, Tuple

OUT_BUFFER_SIZE = 0xFFFF
IN_BUFFER_SIZE = int((OUT_BUFFER_SIZE - 12) * 0.89)

GZ_MAGIC = b"\x1f\x8b"
GZ_FTEXT = 0x01
GZ_FHCRC = 0x02
GZ_FEXTRA = 0x04
GZ_FNAME = 0x08
GZ_COMMENT = 0x10
GZ_MAX = 2
GZ_OS_UNIX = 3
GZ_RND_ID = b"RA"
GZ_DEFLATED = 8

_MASK32 = 0xFFFFFFFF
_READ_BLOCK = 1 << 16

TITLE = (
    "type   crc        date    time chunks  size     compr."
    "  uncompr. ratio name\n"
)


class FileType(IntEnum):
    """Kind of a data file."""

    UNKNOWN = 0
    TEXT = 1
    GZIP = 2
    DZIP = 3


class DictZipError(Exception):
    """Raised for malformed files and impossible requests."""


@dataclass
class DictZipHeader:
    """What the header and trailer of a data file tell about it."""

    type: FileType = FileType.UNKNOWN
    crc: int = 0
    length: int = 0
    mtime: int = 0
    compressed_length: int = 0
    header_length: int = 0
    method: int = 0
    flags: int = 0
    extra_flags: int = 0
    os: int = 0
    version: int = 0
    chunk_length: int = 0
    chunk_count: int = 0
    chunks: Tuple[int, ...] = ()
    offsets: Tuple[int, ...] = ()
    orig_filename: Optional[str] = None
    comment: Optional[str] = None


def _build_header(mtime: int, chunk_length: int, sizes, name: bytes) -> bytes:
    extra_length = 10 + 2 * len(sizes)
    return (
        struct.pack(
            "<2sBBIBBH",
            GZ_MAGIC,
            GZ_DEFLATED,
            GZ_FEXTRA | GZ_FNAME,
            mtime & _MASK32,
            GZ_MAX,
            GZ_OS_UNIX,
            extra_length,
        )
        + GZ_RND_ID
        + struct.pack("<HHHH", extra_length - 4, 1, chunk_length, len(sizes))
        + struct.pack(f"<{len(sizes)}H", *sizes)
        + name
        + b"\0"
    )


def compress_file(in_path, out_path) -> None:
    """Compress ``in_path`` into the dictzip file ``out_path``."""
    in_path = os.fspath(in_path)
    st = os.stat(in_path)
    chunk_length = IN_BUFFER_SIZE
    expected_chunks = -(-st.st_size // chunk_length)
    if 10 + 2 * expected_chunks > 0xFFFF:
        raise DictZipError(f"{in_path} is too large for the dictzip format")
    name = os.fsencode(os.path.basename(in_path))
    placeholder = _build_header(0, chunk_length, [0] * expected_chunks, name)

    compressor = zlib.compressobj(
        9, zlib.DEFLATED, -15, 9, zlib.Z_DEFAULT_STRATEGY
    )
    crc = 0
    total = 0
    sizes = []
    with open(in_path, "rb") as src, open(out_path, "wb") as dst:
        dst.write(placeholder)
        while True:
            chunk = src.read(chunk_length)
            if not chunk:
                break
            crc = zlib.crc32(chunk, crc)
            total += len(chunk)
            packed = compressor.compress(chunk) + compressor.flush(zlib.Z_FULL_FLUSH)
            if len(packed) > 0xFFFF:
                raise DictZipError("compressed chunk does not fit in 16 bits")
            sizes.append(len(packed))
            dst.write(packed)
        if len(sizes) != expected_chunks:
            raise DictZipError(f"{in_path} changed while it was compressed")
        dst.write(compressor.flush(zlib.Z_FINISH))
        dst.write(struct.pack("<II", crc & _MASK32, total & _MASK32))
        dst.seek(0)
        dst.write(_build_header(int(st.st_mtime), chunk_length, sizes, name))


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise DictZipError("unexpected end of file in gzip header")
    return data


def _read_cstring(stream: BinaryIO) -> bytes:
    out = bytearray()
    while True:
        ch = stream.read(1)
        if not ch:
            raise DictZipError("unterminated string in gzip header")
        if ch == b"\0":
            return bytes(out)
        out += ch


def _parse_random_access(extra: bytes, header: DictZipHeader) -> None:
    pos = 0
    while pos + 4 <= len(extra):
        sub_id = extra[pos:pos + 2]
        (sub_len,) = struct.unpack_from("<H", extra, pos + 2)
        body = extra[pos + 4:pos + 4 + sub_len]
        pos += 4 + sub_len
        if sub_id != GZ_RND_ID:
            continue
        if len(body) < 6:
            raise DictZipError("truncated random access field")
        version, chunk_length, chunk_count = struct.unpack_from("<HHH", body)
        if version != 1:
            raise DictZipError(f"unsupported dzip version {version}")
        if len(body) < 6 + 2 * chunk_count:
            raise DictZipError("truncated random access field")
        header.version = version
        header.chunk_length = chunk_length
        header.chunk_count = chunk_count
        header.chunks = struct.unpack_from(f"<{chunk_count}H", body, 6)
        header.type = FileType.DZIP
        return


def _read_header(stream: BinaryIO, file_size: int, mtime: int) -> DictZipHeader:
    stream.seek(0)
    magic = stream.read(2)
    if magic != GZ_MAGIC:
        stream.seek(0)
        crc = 0
        for block in iter(lambda: stream.read(_READ_BLOCK), b""):
            crc = zlib.crc32(block, crc)
        return DictZipHeader(
            type=FileType.TEXT, crc=crc, length=file_size, mtime=mtime
        )

    header = DictZipHeader(type=FileType.GZIP, compressed_length=file_size)
    (
        header.method,
        header.flags,
        header.mtime,
        header.extra_flags,
        header.os,
    ) = struct.unpack("<BBIBB", _read_exact(stream, 8))
    if header.flags & GZ_FEXTRA:
        (extra_length,) = struct.unpack("<H", _read_exact(stream, 2))
        _parse_random_access(_read_exact(stream, extra_length), header)
    if header.flags & GZ_FNAME:
        header.orig_filename = os.fsdecode(_read_cstring(stream))
    if header.flags & GZ_COMMENT:
        header.comment = _read_cstring(stream).decode("latin-1")
    if header.flags & GZ_FHCRC:
        _read_exact(stream, 2)
    header.header_length = stream.tell()

    if file_size < header.header_length + 8:
        raise DictZipError("file is too short for a gzip trailer")
    stream.seek(file_size - 8)
    header.crc, header.length = struct.unpack("<II", _read_exact(stream, 8))

    offsets = []
    position = header.header_length
    for size in header.chunks:
        offsets.append(position)
        position += size
    header.offsets = tuple(offsets)
    return header


def read_header(path) -> DictZipHeader:
    """Read the header of a text, gzip or dictzip file."""
    with open(path, "rb") as stream:
        st = os.fstat(stream.fileno())
        return _read_header(stream, st.st_size, int(st.st_mtime))


class DictZipReader:
    """Random access to the uncompressed contents of a text or dictzip file."""

    def __init__(self, path):
        self.path = os.fspath(path)
        self._file = open(self.path, "rb")
        try:
            st = os.fstat(self._file.fileno())
            self.header = _read_header(self._file, st.st_size, int(st.st_mtime))
            if self.header.type is FileType.GZIP:
                raise DictZipError(
                    f"{self.path} is in gzip format, not dzip format"
                )
        except BaseException:
            self._file.close()
            raise
        self._cached_index: Optional[int] = None
        self._cached_data = b""

    @property
    def length(self) -> int:
        """Length of the uncompressed data."""
        return self.header.length

    def _chunk(self, index: int) -> bytes:
        if index == self._cached_index:
            return self._cached_data
        self._file.seek(self.header.offsets[index])
        raw = self._file.read(self.header.chunks[index])
        try:
            data = zlib.decompressobj(-15).decompress(raw)
        except zlib.error as exc:
            raise DictZipError(f"cannot inflate chunk {index}: {exc}") from exc
        self._cached_index = index
        self._cached_data = data
        return data

    def read(self, start, size) -> bytes:
        """Return ``size`` bytes of uncompressed data from offset ``start``."""
        if start < 0 or size < 0:
            raise DictZipError(f"invalid range: {size} bytes at {start}")
        if start + size > self.header.length:
            raise DictZipError(
                f"requested data ({size} bytes at {start}) past end of file"
            )
        if size == 0:
            return b""
        if self.header.type is FileType.TEXT:
            self._file.seek(start)
            return self._file.read(size)
        chunk_length = self.header.chunk_length
        first = start // chunk_length
        last = (start + size - 1) // chunk_length
        data = b"".join(self._chunk(i) for i in range(first, last + 1))
        offset = start - first * chunk_length
        result = data[offset:offset + size]
        if len(result) != size:
            raise DictZipError("compressed data is shorter than its header says")
        return result

    def close(self) -> None:
        """Close the underlying file."""
        self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def _date_fields(mtime: int) -> Tuple[str, str]:
    stamp = time.ctime(mtime)[4:]
    return stamp[16:20], stamp[:12]


def format_header(header: DictZipHeader, with_title=False) -> str:
    """Return the listing line for ``header``, optionally after a title line."""
    out = [TITLE] if with_title else []
    name = header.orig_filename or ""
    year, date = _date_fields(header.mtime)
    if header.type is FileType.TEXT:
        out.append(f"text {header.crc:08x} {year} {date:>11} ")
        out.append(" " * 12)
        out.append(" " * 10 + f"{header.length:9d} ")
        out.append(f"  0.0% {name}\n")
    elif header.type in (FileType.GZIP, FileType.DZIP):
        out.append("dzip " if header.type is FileType.DZIP else "gzip ")
        out.append(f"{header.crc:08x} {year} {date:>11} ")
        if header.type is FileType.DZIP:
            out.append(f"{header.chunk_count:5d} {header.chunk_length:5d} ")
        else:
            out.append(" " * 12)
        out.append(f"{header.compressed_length:9d} {header.length:9d} ")
        num = header.length - (header.compressed_length - header.header_length)
        den = header.length
        if not den:
            ratio = 0
        elif den < 2147483:
            ratio = _trunc_div(1000 * num, den)
        else:
            ratio = _trunc_div(num, den // 1000)
        if ratio < 0:
            out.append("-")
            ratio = -ratio
        else:
            out.append(" ")
        out.append(f"{ratio // 10:2d}.{ratio % 10:1d}%")
        out.append(f" {name}\n")
    return "".join(out)