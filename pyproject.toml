[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "dictkit"
version = "2.0.0"
description = "Tools for building and reading DICT protocol dictionary databases: index-key normalisation, data/index writing and dictzip random-access compression"
requires-python = ">=3.10"
dependencies = [
    "wcwidth",
]
keywords = [
    "dict",
    "dictionary",
    "dictd",
    "dictzip",
    "index",
    "gzip",
    "random-access",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Text Processing :: Indexing",
    "Topic :: System :: Archiving :: Compression",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
dictzip = "dictkit.dictzip_cli:main"

[tool.setuptools.packages.find]
include = ["dictkit*"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
