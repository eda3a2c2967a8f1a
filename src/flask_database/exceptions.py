"""
Errors raised by the database extension.
ConfigurationError and DatabaseConnectionError never escape ConnectionManager.acquire;
UnsafeInputError always reaches the caller.
"""


class DatabasePluginError(Exception):
    """Base class for every error raised by flask_database."""


class ConfigurationError(DatabasePluginError):
    """No usable settings for the requested connection."""


class DatabaseConnectionError(DatabasePluginError):
    """The driver failed to open a connection."""


class QueryValidationError(DatabasePluginError):
    """Quick-query arguments have the wrong shape (table, data or where)."""


class UnsafeInputError(DatabasePluginError):
    """LIMIT, OFFSET or ORDER BY input that would be interpolated into SQL is malformed."""
