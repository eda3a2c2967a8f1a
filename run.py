"""
Users demo launcher, from project root: python run.py [--init-db]
--init-db creates and seeds the users table first (what setup_db.py does), then serves.
"""
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT / "src"))

from index import main as serve


def run(argv):
    if "--init-db" in argv:
        from setup_db import main as init_db

        init_db()
    serve()


if __name__ == "__main__":
    run(sys.argv[1:])
