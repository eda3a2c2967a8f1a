"""
Opening new handles and checking that cached ones still work.
Both are the defaults ConnectionManager is built with; tests swap in fakes.
"""
import logging

from werkzeug.utils import import_string

from flask_database.drivers import build_connect_args
from flask_database.exceptions import ConfigurationError, DatabaseConnectionError
from flask_database.handle import Handle

logger = logging.getLogger(__name__)

PROBE_SQL = "SELECT 1"


def handle_factory_for(settings):
    """Callable that wraps a raw connection: handle_factory, else handle_class, else Handle."""
    if settings.handle_factory is not None:
        return settings.handle_factory
    handle_class = settings.handle_class or Handle
    if isinstance(handle_class, str):
        try:
            handle_class = import_string(handle_class)
        except ImportError as e:
            raise ConfigurationError(f"Can't load handle_class '{settings.handle_class}': {e}") from e
    if not (isinstance(handle_class, type) and issubclass(handle_class, Handle)):
        raise ConfigurationError(f"handle_class {handle_class!r} must be a subclass of flask_database.Handle")
    return handle_class


def open_connection(settings, hooks, log=None):
    """Connect with the given settings and return a ready handle.

    Raises ConfigurationError for unusable settings and DatabaseConnectionError
    when the driver can't connect. Failing on_connect_do statements are logged only.
    """
    log = log or logger
    factory = handle_factory_for(settings)
    driver, kwargs = build_connect_args(settings, log)
    try:
        module = driver.module
    except ImportError as e:
        raise ConfigurationError(f"Driver module '{driver.module_name}' for {driver.name} is not installed") from e

    try:
        conn = module.connect(**kwargs)
    except Exception as e:
        raise DatabaseConnectionError(f"Database connection failed - {e}") from e

    # Every statement run through the handle reports driver errors to the database_error hook
    handle = factory(conn, driver, hooks=hooks, log_queries=settings.log_queries, logger=log, settings=settings)

    for statement in settings.on_connect_do:
        try:
            handle.do(statement)
        except driver.error_class as e:
            log.error("Failed to perform on-connect command %s: %s", statement, e)

    return handle


def check_connection(handle):
    """True if the handle can still talk to its database. Never raises."""
    if handle is None:
        return False
    try:
        alive = handle.driver.ping(handle.connection)
        if alive is not None:
            return bool(alive)
        # Driver can't tell; run a trivial query
        cur = handle.connection.cursor()
        try:
            cur.execute(PROBE_SQL)
            cur.fetchall()
        finally:
            cur.close()
        return True
    except Exception as e:
        logger.debug("Liveness check failed for %r: %s", handle, e)
        return False
