"""
Create the users table and load seed rows. Run once before first start.
Uses the same DATABASE_* settings as the app (.env). Run from project root: python setup_db.py
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))
import config
from flask_database import database
from index import create_app
from schema import create_schema


def main():
    app = create_app()
    with app.app_context():
        handle = database()
        if handle is None:
            print("ERROR: could not connect; check DATABASE_* settings")
            sys.exit(1)
        inserted = create_schema(handle)
    print(f"Table '{config.USERS_TABLE}' ready ({inserted} seed rows inserted)")


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print(f"ERROR: {e}")
        sys.exit(1)
