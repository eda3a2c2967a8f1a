"""
Database handle returned by database(): a DB-API connection plus quick-query helpers.

    db = database()
    db.quick_insert("users", {"id": 42, "name": "Bob"})
    user = db.quick_select_one("users", {"id": 42})
    admins = db.quick_select_many("users", {"category": "admin"}, {"order_by": "name"})
    db.quick_update("users", {"id": 42}, {"name": "Billy"})
    db.quick_delete("users", {"id": 42})

Anything not defined here (autocommit, in_transaction, ...) is looked up on the wrapped connection.
Driver errors from execute/query helpers, cursors, commit and rollback are passed to the
database_error hook before they propagate.
"""
import logging

from flask_database.exceptions import QueryValidationError
from flask_database.sqlbuilder import build_query, quote_identifier

LOGGED_VALUE_MAX = 50


def _loggable(value):
    """Bind value as it may appear in a debug log line."""
    if value is None:
        return "None"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "[binary data not logged]"
    text = str(value)
    if not text.isascii():
        return "[non-ASCII data not logged]"
    if len(text) > LOGGED_VALUE_MAX:
        return text[: LOGGED_VALUE_MAX - 3] + "..."
    return text


class HandleCursor:
    """DB-API cursor from Handle.cursor(); statement and fetch errors go to the database_error hook."""

    _GUARDED = frozenset(("execute", "executemany", "callproc", "fetchone", "fetchmany", "fetchall"))

    def __init__(self, cursor, handle):
        self.cursor = cursor
        self.handle = handle

    def __getattr__(self, name):
        if name in ("cursor", "handle"):
            raise AttributeError(name)
        attr = getattr(self.cursor, name)
        if name not in self._GUARDED:
            return attr

        def guarded(*args, **kwargs):
            result = self.handle._guarded(attr, *args, **kwargs)
            # sqlite3's execute returns the cursor itself; keep callers on the wrapper
            return self if result is self.cursor else result

        return guarded

    def __iter__(self):
        return iter(self.cursor)


class Handle:
    def __init__(self, connection, driver, *, hooks=None, log_queries=False, logger=None, settings=None):
        self.connection = connection
        self.driver = driver
        self.hooks = hooks
        self.log_queries = bool(log_queries)
        self.logger = logger or logging.getLogger(__name__)
        self.settings = settings

    def __getattr__(self, name):
        # Only reached for attributes Handle itself doesn't define
        if name == "connection":
            raise AttributeError(name)
        return getattr(self.connection, name)

    def __repr__(self):
        return f"<{type(self).__name__} {self.driver.name} {self.connection!r}>"

    # Plain DB-API access

    def _report(self, error):
        if self.hooks is not None:
            self.hooks.fire("database_error", error, self)

    def _guarded(self, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except self.driver.error_class as e:
            self._report(e)
            raise

    def cursor(self, *args, **kwargs):
        return HandleCursor(self._guarded(self.connection.cursor, *args, **kwargs), self)

    def commit(self):
        return self._guarded(self.connection.commit)

    def rollback(self):
        return self._guarded(self.connection.rollback)

    def execute(self, sql, params=None):
        """Execute one statement and return the cursor. Driver errors fire database_error, then propagate.

        With params=None the statement is sent as-is; any sequence (even empty) is bound,
        so pyformat drivers apply %-formatting to it.
        """
        cur = None
        try:
            cur = self.connection.cursor()
            if params is None:
                cur.execute(sql)
            else:
                cur.execute(sql, tuple(params))
        except self.driver.error_class as e:
            if cur is not None:
                cur.close()
            self._report(e)
            raise
        return cur

    def do(self, sql, params=None):
        """Execute INSERT/UPDATE/DELETE (or DDL); returns the affected row count."""
        cur = self.execute(sql, params)
        try:
            return cur.rowcount
        finally:
            cur.close()

    def query(self, sql, params=None):
        """Execute SELECT and return list of dicts (rows)."""
        cur = self.execute(sql, params)
        try:
            return [self._row_dict(cur, row) for row in cur.fetchall()]
        finally:
            cur.close()

    def query_one(self, sql, params=None):
        """Execute SELECT and return first row (dict) or None."""
        cur = self.execute(sql, params)
        try:
            row = cur.fetchone()
            return self._row_dict(cur, row) if row is not None else None
        finally:
            cur.close()

    def quote_identifier(self, name):
        return quote_identifier(name, self.driver.quote_char)

    def close(self):
        self.connection.close()

    @staticmethod
    def _row_dict(cur, row):
        if isinstance(row, dict):
            return row
        if hasattr(row, "keys"):
            return {key: row[key] for key in row.keys()}
        return {col[0]: value for col, value in zip(cur.description, row)}

    # Quick queries

    def quick_insert(self, table, row):
        """Insert one row given as a column -> value mapping. Returns the affected row count."""
        return self._quick_query("INSERT", table, data=row)

    def quick_update(self, table, where, changes):
        """Update the rows matching where with a column -> value mapping of changes."""
        return self._quick_query("UPDATE", table, data=changes, where=where)

    def quick_delete(self, table, where):
        return self._quick_query("DELETE", table, where=where)

    def quick_select_one(self, table, where, options=None):
        """First matching row as a dict, or None. An implicit LIMIT 1 is added unless options set a limit."""
        return self._quick_query("SELECT", table, where=where, options=options, single=True)

    def quick_select_many(self, table, where, options=None):
        """All matching rows as a list of dicts.

        options: {"columns": [...], "order_by": ..., "limit": ..., "offset": ...};
        a bare list of column names is accepted as {"columns": [...]}.
        """
        return self._quick_query("SELECT", table, where=where, options=options)

    def quick_lookup(self, table, where, column):
        """Value of one column from the first matching row, or None."""
        row = self._quick_query("SELECT", table, where=where, options={"columns": [column]}, single=True)
        if not row or column not in row:
            return None
        return row[column]

    def quick_count(self, table, where):
        row = self._quick_query("COUNT", table, where=where)
        if row is None:
            return None
        return int(next(iter(row.values())))

    def _quick_query(self, kind, table, data=None, where=None, options=None, single=False):
        try:
            compiled = build_query(
                kind,
                table,
                data,
                where,
                options=options,
                single=single,
                quote=self.quote_identifier,
                placeholder=self.driver.placeholder,
            )
        except QueryValidationError as e:
            self.logger.warning("quick %s on %r skipped: %s", kind.lower(), table, e)
            return None

        sql, params = compiled
        if self.log_queries:
            self.logger.debug(
                "Executing %s query %s with params %s", kind, sql, ",".join(_loggable(v) for v in params)
            )

        if kind == "SELECT":
            if single:
                return self.query_one(sql, params)
            return self.query(sql, params)
        if kind == "COUNT":
            return self.query_one(sql, params)
        return self.do(sql, params)
