"""Exception hierarchy for kinscan.

Every error raised by the scanners aborts the whole call. There are no
partial results: a scan either returns a complete table or raises one of
the exceptions below.

The concrete classes also derive from the matching builtin (ValueError or
IndexError) so callers that already catch builtins keep working.
"""


class KinscanError(Exception):
    """Base class for all kinscan errors."""


class DimensionMismatchError(KinscanError, ValueError):
    """Locus counts disagree between matrices or with lookup metadata."""


class IndexOutOfRangeError(KinscanError, IndexError):
    """An individual index or computed lookup offset is outside its bounds."""


class InvalidArgumentError(KinscanError, ValueError):
    """An argument has an invalid value (negative bound, bad cardinality, ...)."""
