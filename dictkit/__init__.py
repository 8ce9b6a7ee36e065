"""Dictionary database tools: index-key normalisation, data and index writing, and dictzip random-access compression."""

__version__ = "2.0.0"