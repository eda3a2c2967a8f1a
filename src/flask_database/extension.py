"""
Flask integration.

    app = Flask(__name__)
    app.config["DATABASE"] = {"driver": "sqlite", "database": "app.db"}
    db = Database(app)

    @app.get("/users/<int:user_id>")
    def show_user(user_id):
        return jsonify(database().quick_select_one("users", {"id": user_id}))

Named connections live under app.config["DATABASE"]["connections"] and are fetched
with database("name"). Without a DATABASE key, settings come from DATABASE_* environment variables.
"""
import logging

from flask import current_app

from flask_database.config import DEFAULT_CHARSET, env_settings
from flask_database.manager import ConnectionManager

logger = logging.getLogger(__name__)

EXTENSION_KEY = "database"


class Database:
    def __init__(self, app=None, manager=None):
        self.manager = manager or ConnectionManager(logger=logger)
        self.app = None
        self._env_settings = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        app.config.setdefault("DATABASE_CHARSET", DEFAULT_CHARSET)
        app.extensions[EXTENSION_KEY] = self
        self.app = app

    @property
    def hooks(self):
        return self.manager.hooks

    def hook(self, event):
        """Register a hook callback: database_connected, database_connection_lost,
        database_connection_failed or database_error."""
        return self.hooks.hook(event)

    def plugin_settings(self, app=None):
        app = app or current_app
        # Re-read on every call so config changed at runtime is honoured
        settings = app.config.get("DATABASE")
        if settings is None:
            # .env lookup walks the filesystem; read it once
            if self._env_settings is None:
                self._env_settings = env_settings()
            settings = self._env_settings
        return settings

    def get_handle(self, arg=None, app=None):
        """Handle for the default connection, a named one, or inline settings; None if unavailable."""
        app = app or current_app
        return self.manager.acquire(arg, self.plugin_settings(app), app.config.get("DATABASE_CHARSET"))

    def close(self):
        """Close the calling thread's cached handles."""
        self.manager.close()


def database(arg=None):
    """Handle for the current app; see Database.get_handle."""
    ext = current_app.extensions.get(EXTENSION_KEY)
    if ext is None:
        raise RuntimeError("flask_database.Database has not been initialised for this app")
    return ext.get_handle(arg)
