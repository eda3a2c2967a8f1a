"""
Schema and seed rows for the users demo table.
"""
import config

SCHEMA_SQL = (
    f"CREATE TABLE IF NOT EXISTS {config.USERS_TABLE} "
    "(id INTEGER PRIMARY KEY, name VARCHAR(255), category VARCHAR(255))"
)

SEED_USERS = (
    {"id": 1, "name": "sukria", "category": "admin"},
    {"id": 2, "name": "bigpresh", "category": "admin"},
    {"id": 3, "name": "badger", "category": "animal"},
    {"id": 4, "name": "bodger", "category": "man"},
    {"id": 5, "name": "mousey", "category": "animal"},
    {"id": 6, "name": "mystery2", "category": None},
    {"id": 7, "name": "mystery1", "category": None},
)


def create_schema(handle, seed=True):
    """Create the users table and, if it is empty, insert the seed rows. Returns rows inserted."""
    handle.do(SCHEMA_SQL)
    if not seed or handle.quick_count(config.USERS_TABLE, {}):
        return 0
    for row in SEED_USERS:
        handle.quick_insert(config.USERS_TABLE, row)
    return len(SEED_USERS)
