"""Base exception shared by every m2m error type."""


class M2MError(Exception):
    """Base class for errors that map to a generic CLI failure (exit code 1)."""

    pass
