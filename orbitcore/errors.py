"""Exceptions raised by the transfer computation core."""


class OrbitCoreError(Exception):
    """Base class for every error raised by orbitcore."""


class InvalidInputError(OrbitCoreError):
    """
    Caller supplied an unknown body name or an incomplete date range.

    Attributes:
        options (list[str]): Accepted values, when the error is about a choice.
    """
    def __init__(self, message: str, options=None):
        super().__init__(message)
        self.options = list(options) if options is not None else []


class EphemerisError(OrbitCoreError):
    """Ephemeris could not be fetched or parsed."""


class NetworkError(EphemerisError):
    """Upstream ephemeris service unreachable or returned a non-success status."""


class FormatError(EphemerisError):
    """Upstream payload did not have the expected shape."""


class EmptyResultError(EphemerisError):
    """Upstream payload parsed correctly but contained no data rows."""
