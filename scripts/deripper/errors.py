"""
Error types raised by the de-ripping pipeline.

Every error is fatal for a run: the driver lets them propagate so the
corrected FASTA is never written from a partially processed region stream.
"""


class DeripError(Exception):
    """Base class for pipeline errors."""


class ParseError(DeripError, ValueError):
    """Malformed FASTA input or region record."""


class SequenceLookupError(DeripError, LookupError):
    """Region references a sequence id that is not in the genome."""


class RangeError(DeripError, IndexError):
    """Subsequence request outside the bounds of a sequence."""


class SearchError(DeripError, RuntimeError):
    """The BLAST engine is unavailable or a search/index build failed."""
