"""
Exception types for pacmap.

Query failures are split by cause so callers can tell a package that is not
installed apart from a broken record or a package manager that could not run.
"""


class PacmapError(Exception):
    """Base class for all pacmap errors."""


class PackageQueryError(PacmapError):
    """A package query did not produce a usable record."""

    def __init__(self, package: str | None, message: str):
        self.package = package
        super().__init__(message)


class PackageNotFoundError(PackageQueryError):
    """The package manager reported no such package (empty or error output)."""


class MalformedRecordError(PackageQueryError):
    """A record was returned but a required field is missing or unparsable."""


class QueryTransportError(PackageQueryError):
    """The package manager command could not be run to completion."""
