"""Command-line front end for compressing, listing and reading dictzip files."""

from __future__ import annotations

import getopt
import os
import re
import sys
from dataclasses import dataclass
from typing import BinaryIO, List, Optional

from dictkit.dictzip import (
    IN_BUFFER_SIZE,
    DictZipError,
    DictZipReader,
    compress_file,
    format_header,
    read_header,
)
from dictkit.textnorm import b64_decode

VERSION = "2.0.0"
PROGRAM = "dictzip"

_SHORT_OPTIONS = "cdfhklLe:E:s:S:tvVD:p:P:"
_LONG_OPTIONS = {
    "stdout": "-c",
    "decompress": "-d",
    "force": "-f",
    "help": "-h",
    "keep": "-k",
    "list": "-l",
    "license": "-L",
    "test": "-t",
    "verbose": "-v",
    "version": "-V",
    "debug=": "-D",
    "start=": "-s",
    "size=": "-e",
    "Start=": "-S",
    "Size=": "-E",
    "pre=": "-p",
    "post=": "-P",
}
_LONG_TO_SHORT = {"--" + name.rstrip("="): short for name, short in _LONG_OPTIONS.items()}

_HELP = (
    "Usage: dictzip [options] name",
    "",
    "-d --decompress      decompress",
    "-f --force           force overwrite of output file",
    "-h --help            give this help",
    "-k --keep            do not delete original file",
    "-l --list            list compressed file contents",
    "-L --license         display software license",
    "-c --stdout          write to stdout (decompression only)",
    "-t --test            test compressed file integrity",
    "-v --verbose         verbose mode",
    "-V --version         display version number",
    "-D --debug           select debug option",
    "-s --start <offset>  starting offset for decompression (decimal)",
    "-e --size <offset>   size for decompression (decimal)",
    "-S --Start <offset>  starting offset for decompression (base64)",
    "-E --Size <offset>   size for decompression (base64)",
    "-p --pre <filter>    pre-compression filter",
    "-P --post <filter>   post-compression filter",
)

_DECIMAL_PREFIX = re.compile(r"\s*\+?(\d+)")


@dataclass
class _Settings:
    decompress: bool = False
    force: bool = False
    keep: bool = False
    list_only: bool = False
    to_stdout: bool = False
    verbose: bool = False
    start: int = 0
    size: int = 0
    pre: Optional[str] = None
    post: Optional[str] = None


def _banner() -> None:
    print(f"{PROGRAM} {VERSION}", file=sys.stderr)
    print(file=sys.stderr)


def _help() -> None:
    _banner()
    for line in _HELP:
        print(line, file=sys.stderr)


def _parse_decimal(text: str) -> int:
    """Read the leading decimal digits of ``text``; 0 when there are none."""
    found = _DECIMAL_PREFIX.match(text)
    return int(found.group(1)) if found else 0


def _copy_range(reader: DictZipReader, stream: BinaryIO, start: int, size: int) -> int:
    if not size:
        size = reader.length
    if start:
        stream.write(reader.read(start, size))
        stream.flush()
        return size
    step = reader.header.chunk_length or IN_BUFFER_SIZE
    for offset in range(0, size, step):
        stream.write(reader.read(offset, min(step, size - offset)))
        stream.flush()
    return size


def decompress_to(path, stream, start=0, size=0) -> int:
    """Write ``size`` uncompressed bytes of ``path`` from ``start`` to ``stream``.

    A ``size`` of 0 means the whole uncompressed length.  Returns the number
    of bytes written.
    """
    with DictZipReader(path) as reader:
        return _copy_range(reader, stream, start, size)


def _decompress_file(path: str, settings: _Settings) -> None:
    dot = path.rfind(".")
    if dot < 0:
        raise DictZipError("Cannot truncate filename")
    target = path[:dot]
    if not settings.force and os.path.exists(target):
        raise DictZipError(f"{target} already exists")
    with open(target, "wb") as out:
        with DictZipReader(path) as reader:
            _copy_range(reader, out, 0, settings.size)
    if not settings.keep:
        os.unlink(path)


def _compress(path: str, settings: _Settings) -> None:
    target = f"{path}.dz"
    compress_file(path, target)
    if settings.verbose:
        header = read_header(target)
        print(f"total: {header.chunk_count} chunks, {header.length} bytes")
    if not settings.keep:
        os.unlink(path)


def _apply_option(option: str, value: str, settings: _Settings) -> Optional[int]:
    """Apply one option; return an exit status when the program must stop."""
    key = _LONG_TO_SHORT.get(option, option)
    if key == "-d":
        settings.decompress = True
    elif key == "-f":
        settings.force = True
    elif key == "-k":
        settings.keep = True
    elif key in ("-l", "-t"):
        settings.list_only = True
    elif key == "-c":
        settings.to_stdout = True
    elif key == "-v":
        settings.verbose = True
    elif key == "-D":
        if value == "verbose":
            settings.verbose = True
    elif key in ("-L", "-V"):
        _banner()
        return 1
    elif key == "-s":
        settings.decompress = True
        settings.start = _parse_decimal(value)
    elif key == "-e":
        settings.decompress = True
        settings.size = _parse_decimal(value)
    elif key == "-S":
        settings.decompress = True
        settings.start = b64_decode(value)
    elif key == "-E":
        settings.decompress = True
        settings.size = b64_decode(value)
    elif key == "-p":
        settings.pre = value
    elif key == "-P":
        settings.post = value
    else:
        _help()
        return 1
    return None


def main(argv=None) -> int:
    """Run the dictzip command; return the exit status."""
    invoked_as = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else PROGRAM
    args: List[str] = sys.argv[1:] if argv is None else list(argv)

    settings = _Settings()
    if invoked_as == "dictunzip":
        settings.decompress = True
    elif invoked_as == "dictzcat":
        settings.decompress = True
        settings.to_stdout = True

    try:
        pairs, files = getopt.gnu_getopt(args, _SHORT_OPTIONS, list(_LONG_OPTIONS))
    except getopt.GetoptError as exc:
        print(f"{PROGRAM}: {exc}", file=sys.stderr)
        _help()
        return 1

    for option, value in pairs:
        status = _apply_option(option, value, settings)
        if status is not None:
            return status

    if settings.pre or settings.post:
        print(f"{PROGRAM}: compression filters are not supported", file=sys.stderr)
        return 1

    first = True
    for path in files:
        try:
            if settings.list_only:
                header = read_header(path)
                sys.stdout.write(format_header(header, with_title=first))
                first = False
            elif settings.decompress:
                if settings.to_stdout:
                    out = getattr(sys.stdout, "buffer", sys.stdout)
                    decompress_to(path, out, settings.start, settings.size)
                else:
                    _decompress_file(path, settings)
            else:
                _compress(path, settings)
        except (DictZipError, OSError) as exc:
            print(f"{PROGRAM}: {exc}", file=sys.stderr)
            return 1
    return 0