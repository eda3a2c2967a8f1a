"""
Users demo server entry point: a Flask app using flask_database's quick queries.
Run from project root: python run.py (create the table first with python setup_db.py)
"""
import logging
import sys

from flask import Flask, jsonify

import config
from flask_database import Database, database
from routes.user_routes import blueprint as users_bp

logger = logging.getLogger(__name__)


def register_hooks(db):
    @db.hook("database_connected")
    def connected(handle):
        logger.info("Connected to database: %r", handle)

    @db.hook("database_connection_lost")
    def connection_lost(handle):
        logger.warning("Lost database connection %r, reconnecting", handle)

    @db.hook("database_error")
    def database_error(error, handle):
        logger.error("Database error on %r: %s", handle, error)


def create_app(overrides=None):
    app = Flask(__name__)
    app.json.sort_keys = False
    app.config["DATABASE"] = dict(config.DATABASE)
    if overrides:
        app.config.update(overrides)
    db = Database(app)
    register_hooks(db)

    app.register_blueprint(users_bp, url_prefix="/users")

    @app.route("/")
    def root():
        """Root: simple response so GET / does not 404."""
        return jsonify(
            service="users-demo",
            status="ok",
            health="/health",
            endpoints=[
                "GET /users",
                "GET /users/count",
                "GET /users/lookup?name=",
                "GET /users/<id>",
                "POST /users",
                "PUT /users/<id>",
                "DELETE /users/<id>",
            ],
        ), 200

    @app.route("/favicon.ico")
    def favicon():
        """Avoid 404 for browser favicon requests."""
        return "", 204

    @app.route("/health")
    def health():
        if database() is None:
            return jsonify(status="degraded", service="users-demo", database="unavailable"), 503
        return jsonify(status="ok", service="users-demo", database="ok")

    @app.errorhandler(404)
    def not_found(_e):
        return jsonify(success=False, error="Not found"), 404

    return app


def main():
    logging.basicConfig(stream=sys.stderr, level=logging.DEBUG if config.FLASK_ENV == "development" else logging.INFO)
    app = create_app()
    with app.app_context():
        if database() is None:
            logger.error("Database connection failed; check DATABASE_* settings")
            sys.exit(1)
    app.run(host="0.0.0.0", port=config.PORT, debug=(config.FLASK_ENV == "development"))


if __name__ == "__main__":
    main()
