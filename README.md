# dictkit

Tools for preparing and reading dictionary databases in the format served
by DICT protocol servers: a `.dict` data file, a sorted `.index` file whose
offsets and sizes are written in a base64 notation, and the dictzip
compression format, which keeps a chunk table so that any byte range can be
read back without decompressing the whole file.

## Installation

```sh
pip install .
```

Running the tests:

```sh
pip install .[test]
pytest
```

## The `dictzip` command

```sh
dictzip example.dict            # writes example.dict.dz and removes the original
dictzip -k example.dict         # keep the original
dictzip -l example.dict.dz      # list header information
dictzip -d example.dict.dz      # restore example.dict
dictzip -c -d example.dict.dz   # decompress to standard output
dictzip -c -s 1000 -e 200 example.dict.dz   # read 200 bytes from offset 1000
```

- `-s`/`--start` and `-e`/`--size` take a decimal offset and size; `-S` and
  `-E` take them in the base64 form used by `.index` files. Any of these
  implies decompression. A size of 0 means the whole file.
- `-t`/`--test` lists the file like `-l`.
- `-f`/`--force` overwrites an existing output when decompressing.
- `-v`/`--verbose` reports the number of chunks after compressing.
- `-V` and `-L` print the program name and version.
- The pre- and post-compression filter options `-p` and `-P` are accepted
  but rejected with an error: filters are not supported.

Run under the name `dictunzip` the command decompresses; run as `dictzcat`
it decompresses to standard output.

## Library use

### dictzip files

```python
from dictkit.dictzip import DictZipReader, compress_file, format_header, read_header
from dictkit.textnorm import b64_decode

compress_file("example.dict", "example.dict.dz")

print(format_header(read_header("example.dict.dz"), with_title=True), end="")

with DictZipReader("example.dict.dz") as reader:
    text = reader.read(b64_decode("D6"), b64_decode("B4"))
```

`DictZipReader` also reads plain text files; a gzip file without a chunk
table raises `DictZipError`.

### Writing data and index files

`dictkit.formatter.DictWriter` writes definitions to a binary data stream,
wrapping lines at `FormatOptions.columns` (0 turns wrapping off), and
collects index entries, which are sorted and written to the index stream by
`close()`.

```python
from dictkit.formatter import DictWriter, FormatOptions

options = FormatOptions(url="http://dict.example.com/", short_name="Example", quiet=True)
with open("example.dict", "wb") as data, open("example.index", "w", encoding="latin-1") as index:
    writer = DictWriter(data, index, options)
    writer.predefined_before()
    writer.new_headword("apple")
    writer.write_string("A round fruit of a tree of the rose family.")
    writer.newline()
    writer.predefined_after()
    writer.close()
```

`predefined_before()` and `predefined_after()` add the reserved
`00-database-...` entries (version, URL, short name, info, alphabet and the
utf8/allchars/case-sensitive flags). Options such as `hw_separator`,
`break_headwords`, `index_keep_orig`, `default_strategy` and `mime_header`
mirror the usual settings of a dictionary formatter. The index is sorted in
Python by `sort_index_lines()`.

### Helpers

```python
from dictkit.textnorm import tolower_alnumspace, b64_encode, b64_decode

tolower_alnumspace("Hello, World!", allchars=False, case_sensitive=False, utf8=True)
# 'hello world'
b64_decode(b64_encode(12345))
# 12345
```

```python
from dictkit.md5 import md5

md5(b"abc").hexdigest()
```

`dictkit.codes.ResponseCode` lists the numeric response codes of the DICT
protocol; `dictkit.fmttext` holds the width and whitespace-trimming helpers
used by the writer.

## What is not included

- There is no command that converts a plain-text dictionary into `.dict` and
  `.index` files; building a database is done from Python with `DictWriter`.
- There is no dictionary server or client, and no server plugins.