"""
Connection settings. Read from the Flask app config (DATABASE key) or, when the app
carries none, from the environment. Copy .env.example to .env in the working directory.
"""
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from flask_database.exceptions import ConfigurationError

# Seconds between liveness checks of a cached handle; 0 disables checking
DEFAULT_CHECK_THRESHOLD = 30

DEFAULT_CHARSET = "utf-8"

# Older configs spell some keys differently
_ALIASES = {
    "dbname": "database",
    "user": "username",
    "connectivity-check-threshold": "connection_check_threshold",
    "dbi_params": "driver_options",
    "options": "driver_options",
}


@dataclass(frozen=True)
class ConnectionSettings:
    """How to reach one database. Built fresh for every acquisition."""

    driver: Optional[str] = None
    dsn: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    driver_options: dict = field(default_factory=dict)
    dsn_extra: dict = field(default_factory=dict)
    on_connect_do: tuple = ()
    auto_utf8: bool = True
    connection_check_threshold: Optional[float] = DEFAULT_CHECK_THRESHOLD
    handle_class: Any = None
    handle_factory: Optional[Callable] = None
    log_queries: bool = False
    charset: Optional[str] = None

    @classmethod
    def from_mapping(cls, mapping, charset=None):
        """Shallow-copy a config mapping into settings, applying aliases and defaults."""
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in mapping.items():
            canonical = _ALIASES.get(key, key)
            if canonical not in known:
                continue
            # Canonical spelling wins over an alias
            if canonical != key and canonical in mapping:
                continue
            values[canonical] = value

        if "driver_options" in values:
            values["driver_options"] = dict(values["driver_options"] or {})
        if "dsn_extra" in values:
            values["dsn_extra"] = dict(values["dsn_extra"] or {})
        to_do = values.get("on_connect_do")
        if to_do is not None:
            values["on_connect_do"] = (to_do,) if isinstance(to_do, str) else tuple(to_do)
        if values.get("port") not in (None, ""):
            values["port"] = int(values["port"])
        if charset is not None:
            values["charset"] = charset
        return cls(**values)

    def with_charset(self, charset):
        return replace(self, charset=charset)

    @property
    def is_configured(self):
        return bool(self.driver or self.dsn)

    def describe(self):
        """Short label for log lines; never includes the password."""
        if self.dsn:
            return self.dsn.split("@")[-1]
        where = self.host or "localhost"
        return f"{self.driver}:{self.database or ''}@{where}"


def resolve_settings(arg, plugin_settings, charset=None):
    """Return the ConnectionSettings to use for database(arg).

    arg is None for the default connection, a name from the ``connections``
    collection, or an inline mapping/ConnectionSettings supplied at runtime.
    Raises ConfigurationError when nothing matches.
    """
    plugin_settings = plugin_settings or {}
    charset = charset or plugin_settings.get("charset") or DEFAULT_CHARSET

    if isinstance(arg, ConnectionSettings):
        return arg.with_charset(charset)
    if isinstance(arg, Mapping):
        return ConnectionSettings.from_mapping(arg, charset=charset)

    if arg is None:
        defaults = {k: v for k, v in plugin_settings.items() if k != "connections"}
        settings = ConnectionSettings.from_mapping(defaults, charset=charset)
        if not settings.is_configured:
            raise ConfigurationError(
                "Asked for default connection (no name given) but no default connection details found in config"
            )
        return settings

    connections = plugin_settings.get("connections") or {}
    named = connections.get(arg)
    if named is None:
        raise ConfigurationError(
            f"Asked for a database handle named '{arg}' but no matching connection details found in config"
        )
    if isinstance(named, ConnectionSettings):
        return named.with_charset(charset)
    return ConnectionSettings.from_mapping(named, charset=charset)


def _env_flag(value):
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def env_settings():
    """Default connection settings from DATABASE_* environment variables (and .env)."""
    load_dotenv(find_dotenv(usecwd=True))

    settings = {}
    if os.environ.get("DATABASE_URL"):
        settings["dsn"] = os.environ["DATABASE_URL"]
    env_keys = {
        "driver": "DATABASE_DRIVER",
        "host": "DATABASE_HOST",
        "port": "DATABASE_PORT",
        "database": "DATABASE_NAME",
        "username": "DATABASE_USER",
        "password": "DATABASE_PASSWORD",
    }
    for key, env_name in env_keys.items():
        if os.environ.get(env_name):
            settings[key] = os.environ[env_name]
    threshold = os.environ.get("DATABASE_CONNECTION_CHECK_THRESHOLD")
    if threshold not in (None, ""):
        settings["connection_check_threshold"] = float(threshold)
    if os.environ.get("DATABASE_LOG_QUERIES"):
        settings["log_queries"] = _env_flag(os.environ["DATABASE_LOG_QUERIES"])
    return settings
