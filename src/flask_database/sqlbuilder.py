"""
Turns quick-query arguments (table, row data, where mapping, select options) into
parameterized SQL. Pure functions: no connection, no shared state.

Column and condition order is sorted by name so the same input always yields the same SQL.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, NamedTuple

from flask_database.exceptions import QueryValidationError, UnsafeInputError

logger = logging.getLogger(__name__)

QUERY_KINDS = ("SELECT", "INSERT", "UPDATE", "DELETE", "COUNT")

# Operator-map keys accepted in where conditions, e.g. {"age": {"ge": 18}}
OPERATORS = {
    "eq": "=",
    "ne": "!=",
    "lt": "<",
    "le": "<=",
    "gt": ">",
    "ge": ">=",
    "like": "LIKE",
    "ilike": "ILIKE",
    "is": "IS",
}

# LIMIT and OFFSET are interpolated, never bound: digits only
_LIMIT_RE = re.compile(r"[0-9]+(?:,[0-9]+)?")
_OFFSET_RE = re.compile(r"[0-9]+")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class Raw:
    """A value inlined verbatim into the SQL instead of being bound, e.g. Raw("CURRENT_TIMESTAMP")."""

    sql: str

    def __str__(self):
        return self.sql


class CompiledQuery(NamedTuple):
    sql: str
    params: tuple


def quote_identifier(name, quote_char='"'):
    """Quote each dot-separated segment: schema.table -> "schema"."table"."""
    doubled = quote_char * 2
    return ".".join(f"{quote_char}{part.replace(quote_char, doubled)}{quote_char}" for part in str(name).split("."))


def normalize_options(options):
    """Select options as a dict; a bare list of column names means {"columns": [...]}."""
    if options is None:
        return {}
    if isinstance(options, (list, tuple)):
        return {"columns": list(options)}
    if not isinstance(options, Mapping):
        raise QueryValidationError(f"Expected a mapping of select options, got {type(options).__name__}")
    return dict(options)


def build_query(
    kind: str,
    table: str,
    data: Mapping[str, Any] | None = None,
    where: Any = None,
    *,
    options: Any = None,
    single: bool = False,
    quote: Callable[[str], str] = quote_identifier,
    placeholder: str = "?",
) -> CompiledQuery:
    """Build the SQL and bind values for one quick query.

    kind: SELECT, INSERT, UPDATE, DELETE or COUNT.
    data: field -> value mapping for INSERT/UPDATE.
    where: None is only valid for INSERT; {} matches every row; a str is used verbatim.
    options: SELECT only; columns, order_by, limit, offset.
    single: the caller wants one row, so LIMIT 1 is added unless a limit was given.

    Raises QueryValidationError for arguments of the wrong shape and UnsafeInputError
    for LIMIT/OFFSET/ORDER BY values that can't be interpolated safely.
    """
    kind = str(kind).upper()
    if kind not in QUERY_KINDS:
        raise QueryValidationError(f"Unrecognised query type {kind}")
    if not table or not isinstance(table, str):
        raise QueryValidationError("Expected table name as a plain string")
    if kind in ("INSERT", "UPDATE") and (not isinstance(data, Mapping) or not data):
        raise QueryValidationError("Expected a mapping of changes")
    if kind != "INSERT" and (where is None or (isinstance(where, str) and not where.strip())):
        raise QueryValidationError("Expected where conditions")

    opts = normalize_options(options) if kind == "SELECT" else {}
    table_sql = quote(table)
    params = []

    if kind == "SELECT":
        parts = [f"SELECT {_column_list(opts.get('columns'), quote)} FROM {table_sql}"]
    elif kind == "COUNT":
        parts = [f"SELECT COUNT(*) FROM {table_sql}"]
    elif kind == "DELETE":
        parts = [f"DELETE FROM {table_sql}"]
    elif kind == "INSERT":
        columns = sorted(data)
        values = [_value_sql(data[col], placeholder, params) for col in columns]
        parts = [
            f"INSERT INTO {table_sql} ({','.join(quote(col) for col in columns)}) VALUES ({','.join(values)})"
        ]
    else:
        assignments = [f"{quote(col)}={_value_sql(data[col], placeholder, params)}" for col in sorted(data)]
        parts = [f"UPDATE {table_sql} SET {','.join(assignments)}"]

    if kind != "INSERT":
        where_sql = _where_clause(where, quote, placeholder, params)
        if where_sql:
            parts.append(f"WHERE {where_sql}")

    if kind == "SELECT":
        order_by = opts.get("order_by")
        if order_by is not None:
            clause = _order_by_clause(order_by, quote)
            if clause:
                parts.append(clause)
        limit = opts.get("limit")
        if limit is not None:
            parts.append(f"LIMIT {_checked_number(limit, _LIMIT_RE, 'LIMIT')}")
        elif single:
            parts.append("LIMIT 1")
        offset = opts.get("offset")
        if offset is not None:
            parts.append(f"OFFSET {_checked_number(offset, _OFFSET_RE, 'OFFSET')}")

    return CompiledQuery(" ".join(parts), tuple(params))


def _column_list(columns, quote):
    if not columns:
        return "*"
    if isinstance(columns, str):
        columns = [columns]
    return ",".join(quote(col) for col in columns)


def _raw_sql(sql, placeholder):
    # pyformat drivers run the statement through %-formatting whenever params are bound
    if placeholder == "%s":
        return sql.replace("%", "%%")
    return sql


def _value_sql(value, placeholder, params):
    if isinstance(value, Raw):
        return _raw_sql(value.sql, placeholder)
    params.append(value)
    return placeholder


def _where_clause(where, quote, placeholder, params):
    if isinstance(where, str):
        # Caller-supplied SQL, used as-is
        return _raw_sql(where, placeholder)
    if not isinstance(where, Mapping):
        raise QueryValidationError(f"Can't handle {type(where).__name__} for where")

    clauses = []
    for column in sorted(where):
        value = where[column]
        name = quote(column)
        if value is None:
            clauses.append(f"{name} IS NULL")
        elif isinstance(value, Mapping):
            clauses.extend(_operator_clauses(column, name, value, placeholder, params))
        elif isinstance(value, (list, tuple)):
            if not value:
                # IN () is not valid SQL; an empty set matches nothing
                clauses.append("1=0")
                continue
            clauses.append(f"{name} IN ({','.join([placeholder] * len(value))})")
            params.extend(value)
        else:
            clauses.append(f"{name}={_value_sql(value, placeholder, params)}")
    return " AND ".join(clauses)


def _operator_clauses(column, name, conditions, placeholder, params):
    negate = bool(conditions.get("not"))
    ops = sorted(key for key in conditions if key != "not")
    if not ops:
        raise QueryValidationError(f"No operators given for column {column}")
    clauses = []
    for op in ops:
        operand = conditions[op]
        sql_op = OPERATORS.get(str(op).lower())
        if sql_op is None:
            raise QueryValidationError(f"Unrecognised operator '{op}' for column {column}")

        if sql_op == "IS":
            if operand is None:
                clauses.append(f"{name} IS NOT NULL" if negate else f"{name} IS NULL")
                continue
            logger.warning(
                "Using the 'is' operator only makes sense to test for nullness, but %r was passed for %s. "
                "Did you mean eq/ne?",
                operand,
                column,
            )
            clauses.append(f"{name} IS NOT {placeholder}" if negate else f"{name} IS {placeholder}")
        elif sql_op in ("LIKE", "ILIKE"):
            clauses.append(f"{name} NOT {sql_op} {placeholder}" if negate else f"{name} {sql_op} {placeholder}")
        else:
            clause = f"{name} {sql_op} {placeholder}"
            clauses.append(f"NOT ({clause})" if negate else clause)
        params.append(operand)
    return clauses


def _order_by_clause(order_by, quote):
    items = order_by if isinstance(order_by, (list, tuple)) else [order_by]
    fields = []
    for item in items:
        if isinstance(item, Mapping):
            if len(item) != 1:
                raise UnsafeInputError(f"order_by entries take exactly one of asc/desc, got {dict(item)!r}")
            ((direction, column),) = item.items()
            direction = str(direction).upper()
            if direction not in ("ASC", "DESC"):
                raise UnsafeInputError(f"Invalid sort order {direction} used in order_by option")
            fields.append(f"{quote(column)} {direction}")
        else:
            fields.append(quote(item))
    if not fields:
        return ""
    return "ORDER BY " + ", ".join(fields)


def _checked_number(value, pattern, label):
    if isinstance(value, bool):
        raise UnsafeInputError(f"Invalid {label} param {value!r}")
    text = _WHITESPACE_RE.sub("", str(value))
    if not pattern.fullmatch(text):
        raise UnsafeInputError(f"Invalid {label} param {value!r}")
    return text
