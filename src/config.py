"""
Demo app configuration from environment. No hardcoded secrets.
Copy .env.example to .env at project root. Default DB is a local SQLite file 'users.db'.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

from flask_database.config import env_settings

# Load .env from project root (parent of src)
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

PORT = int(os.environ.get("PORT", "3000"))
FLASK_ENV = os.environ.get("FLASK_ENV", "development")

# Falls back to SQLite next to the project when no DATABASE_* variables are set
DATABASE = env_settings() or {
    "driver": "sqlite",
    "database": str(Path(__file__).resolve().parent.parent / "users.db"),
}
DATABASE.setdefault("log_queries", FLASK_ENV == "development")

USERS_TABLE = os.environ.get("USERS_TABLE", "users")
