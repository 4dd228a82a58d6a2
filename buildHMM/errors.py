from enum import Enum


class ErrorKind(Enum):
    """Machine-readable category of a build failure."""

    ALLOCATION = "allocation failure"
    NOT_FOUND = "not found"
    FORMAT = "format error"
    NO_RESULT = "no result"
    INVALID_CONFIG = "invalid configuration"
    NUMERICAL = "numerical failure"
    INTERNAL = "internal error"


class BuildError(Exception):
    """Base class of all errors raised by the model construction pipeline.

    Every error carries a human-readable ``message`` with the most specific
    explanation available and a ``kind`` that callers can dispatch on.
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AllocationError(BuildError):
    """A sub-object could not be allocated. Unrecoverable."""
    kind = ErrorKind.ALLOCATION


class MatrixNotFoundError(BuildError):
    """A score matrix file could not be found or opened."""
    kind = ErrorKind.NOT_FOUND


class FormatError(BuildError):
    """Malformed input, e.g. a missing RF line or a non-symmetric matrix."""
    kind = ErrorKind.FORMAT


class NoResultError(BuildError):
    """Well-formed input that yields no consensus columns."""
    kind = ErrorKind.NO_RESULT


class ConfigurationError(BuildError):
    """The builder is not configured for the requested operation."""
    kind = ErrorKind.INVALID_CONFIG


class NumericalError(BuildError):
    """A numerical routine (weighting, clustering, solver) failed."""
    kind = ErrorKind.NUMERICAL
