"""
Error taxonomy for a draft run.

Only ConfigurationError, AuthenticationError and StoreError abort a run.
StoreWriteError is logged and counted; the loop keeps going.
"""


class DraftbotError(Exception):
    """Base class for all draftbot errors."""


class ConfigurationError(DraftbotError):
    """Missing or invalid run configuration. Raised before any target is touched."""

    def __init__(self, problems):
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        message = "Configuration validation failed:\n" + "\n".join(
            f"  - {p}" for p in self.problems
        )
        super().__init__(message)


class AuthenticationError(DraftbotError):
    """The browser session is not logged in to Instagram."""


class StoreError(DraftbotError):
    """The row store could not be read (bad credentials, bad header, API error)."""


class StoreWriteError(StoreError):
    """A single status write-back failed."""
