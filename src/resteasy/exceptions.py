"""Exception hierarchy for resteasy.

All exceptions inherit from :class:`RestEasyError` so callers can catch
everything raised by this package with a single ``except`` clause.
Transport failures are the one exception: errors raised by :mod:`httpx`
(timeouts, DNS failures, invalid headers) propagate unmodified.

Subclass hierarchy::

    RestEasyError
    +-- ConfigError
    +-- StorageError
    |   +-- NotFoundError
    |   +-- InvalidKeyError
    |   +-- UnsupportedScopeError
    +-- DeserializationError
    +-- SerializationError
"""


class RestEasyError(Exception):
    """Base exception for all resteasy errors.

    Args:
        message: Human-readable error description.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(RestEasyError):
    """Raised for configuration problems (invalid JSON, failed validation)."""


class StorageError(RestEasyError):
    """Base class for errors raised by :class:`~resteasy.storage.StorageHelper`."""


class NotFoundError(StorageError):
    """Raised when a file read through the untyped reader does not exist.

    Args:
        key: The file name that was looked up.
        location: Human-readable scope or directory that was searched.
    """

    def __init__(self, key: str, location: str):
        super().__init__(f"File '{key}' not found in {location}")
        self.key = key
        self.location = location


class InvalidKeyError(StorageError):
    """Raised when a storage key is not a plain file name."""


class UnsupportedScopeError(StorageError):
    """Raised when a settings operation targets a scope without a settings table."""


class DeserializationError(RestEasyError):
    """Raised when a body is malformed JSON or does not match the requested type."""


class SerializationError(RestEasyError):
    """Raised when a value cannot be rendered as JSON."""
