"""
Cache of open handles, one per (process, thread, connection identity).

A connection identity is the default connection, a connection name, or an inline
settings object passed to database() (matched by object, not by value). Handles are
reused until connection_check_threshold seconds pass; then they are checked and
replaced if dead.
"""
import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Any, Optional

from flask_database.config import resolve_settings
from flask_database.connector import check_connection, open_connection
from flask_database.exceptions import ConfigurationError, DatabaseConnectionError
from flask_database.hooks import HookDispatcher

logger = logging.getLogger(__name__)


class _DefaultConnection:
    # Not a string, so it can never clash with a connection name
    def __repr__(self):
        return "<default connection>"


DEFAULT_CONNECTION = _DefaultConnection()


def identity_key(arg):
    """Cache key for the argument given to database()."""
    if arg is None:
        return DEFAULT_CONNECTION
    if isinstance(arg, str):
        return ("name", arg)
    return ("settings", id(arg))


@dataclass
class CachedHandle:
    handle: Any
    last_checked: float
    # Inline settings object used as the key; held so its id() can't be reused
    settings_ref: Optional[Any] = None


class HandleCache:
    """Cached handles, partitioned so no two threads or processes share an entry."""

    def __init__(self):
        self._local = threading.local()

    def _entries(self):
        local = self._local
        pid = os.getpid()
        if getattr(local, "pid", None) != pid:
            # First use in this thread, or a forked child holding its parent's handles
            local.pid = pid
            local.entries = {}
        return local.entries

    def get(self, key):
        return self._entries().get(key)

    def put(self, key, entry):
        self._entries()[key] = entry

    def pop(self, key):
        return self._entries().pop(key, None)

    def __len__(self):
        return len(self._entries())

    def clear(self):
        """Close and forget every handle cached by the calling thread."""
        entries = self._entries()
        for entry in entries.values():
            try:
                entry.handle.close()
            except Exception as e:
                logger.warning("Failed to close database handle %r: %s", entry.handle, e)
        entries.clear()


class ConnectionManager:
    def __init__(
        self,
        connector=open_connection,
        checker=check_connection,
        hooks: Optional[HookDispatcher] = None,
        cache: Optional[HandleCache] = None,
        clock=time.monotonic,
        logger: Optional[logging.Logger] = None,
    ):
        self.connector = connector
        self.checker = checker
        self.hooks = hooks if hooks is not None else HookDispatcher()
        self.cache = cache if cache is not None else HandleCache()
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

    def acquire(self, arg=None, plugin_settings=None, charset=None):
        """Return a live handle for arg (None, a connection name, or inline settings), or None.

        Configuration and connection failures are logged and reported as None.
        """
        log = self.logger
        try:
            settings = resolve_settings(arg, plugin_settings, charset)
        except ConfigurationError as e:
            log.error("No DB settings for %s: %s", arg if arg is not None else "default connection", e)
            return None

        key = identity_key(arg)
        entry = self.cache.get(key)
        if entry is not None:
            threshold = settings.connection_check_threshold
            if not threshold:
                return entry.handle
            now = self.clock()
            if now - entry.last_checked < threshold:
                return entry.handle
            if self.checker(entry.handle):
                entry.last_checked = now
                return entry.handle

            log.debug("Database connection went away, reconnecting")
            self.hooks.fire("database_connection_lost", entry.handle)
            try:
                entry.handle.close()
            except Exception as e:
                log.debug("Closing lost database handle failed: %s", e)
            self.cache.pop(key)

        try:
            handle = self.connector(settings, self.hooks, log)
        except ConfigurationError as e:
            log.error("Can't connect to %s: %s", settings.describe(), e)
            return None
        except DatabaseConnectionError as e:
            log.error("%s (%s)", e, settings.describe())
            self.hooks.fire("database_connection_failed", settings)
            return None

        settings_ref = None if arg is None or isinstance(arg, str) else arg
        self.cache.put(key, CachedHandle(handle=handle, last_checked=self.clock(), settings_ref=settings_ref))
        self.hooks.fire("database_connected", handle)
        return handle

    def close(self):
        self.cache.clear()
