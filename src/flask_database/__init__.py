"""Cached, health-checked database handles with quick CRUD helpers for Flask."""
from flask_database.config import ConnectionSettings
from flask_database.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    DatabasePluginError,
    QueryValidationError,
    UnsafeInputError,
)
from flask_database.extension import Database, database
from flask_database.handle import Handle
from flask_database.hooks import HookDispatcher
from flask_database.manager import ConnectionManager, HandleCache
from flask_database.sqlbuilder import Raw, build_query

__version__ = "1.0.0"

__all__ = [
    "ConfigurationError",
    "ConnectionManager",
    "ConnectionSettings",
    "Database",
    "DatabaseConnectionError",
    "DatabasePluginError",
    "Handle",
    "HandleCache",
    "HookDispatcher",
    "QueryValidationError",
    "Raw",
    "UnsafeInputError",
    "build_query",
    "database",
]
