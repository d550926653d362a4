"""Exceptions raised by the storage layer and the shortening service.

Classes:
    ShortlinkError:
        Generic base class for all application exceptions.

    ValidationError:
        Raised when input is rejected before touching the data store.

    EmptyURLError:
        Raised when a shorten request carries no URL.

    InvalidAliasError:
        Raised when a custom alias contains characters outside [A-Za-z0-9_-].

    AliasTooLongError:
        Raised when an alias exceeds the 64 character column limit.

    URLNotFoundError:
        Raised when no short URL matches the requested alias.

    AliasExistsError:
        Raised when inserting an alias that is already taken.

    StorageError:
        Raised for any other data store failure (connection issues, timeouts, etc.).

Example:
    >>> from shortlink_app.exceptions import URLNotFoundError
    >>> raise URLNotFoundError("abc123")
    Traceback (most recent call last):
        ...
    shortlink_app.exceptions.URLNotFoundError: abc123
"""


class ShortlinkError(Exception):
    """Generic base class for application exceptions."""

    pass


class ValidationError(ShortlinkError):
    """Input was rejected before reaching the data store."""

    pass


class EmptyURLError(ValidationError):
    pass


class InvalidAliasError(ValidationError):
    pass


class AliasTooLongError(ValidationError):
    pass


class URLNotFoundError(ShortlinkError):
    """No short URL matches the requested alias."""

    pass


class AliasExistsError(ShortlinkError):
    """The alias is already mapped to another URL."""

    pass


class StorageError(ShortlinkError):
    """Exception raised when there is an error in the data store.

    e.g. connection issues, timeouts, constraint failures other than alias uniqueness.
    """

    pass
