"""
SQL builders for the store table.

Every builder returns (sql, params) for a given dialect. All statements are
scoped to one namespace and compare keys through the dialect's collated key
expression so ordering stays byte-wise on every backend.
"""

from typing import Any

from pglevel.models.dialect import Dialect
from pglevel.models.range_options import RangeOptions

TABLE = "store_kv"
INDEX = "idx_store_kv_namespace_key"

Query = tuple[str, list[Any]]


def schema_statements(dialect: Dialect) -> list[str]:
    """DDL creating the table and its (namespace, key) index if missing."""
    return [
        f"CREATE TABLE IF NOT EXISTS {TABLE} ("
        "namespace TEXT NOT NULL, "
        "key TEXT NOT NULL, "
        "value TEXT NOT NULL, "
        "PRIMARY KEY (namespace, key))",
        f"CREATE INDEX IF NOT EXISTS {INDEX} ON {TABLE} (namespace, {dialect.key})",
    ]


def range_conditions(
    dialect: Dialect,
    namespace: str,
    options: RangeOptions,
    cursor: str | None = None,
    cursor_inclusive: bool = False,
) -> Query:
    """
    Build the WHERE conditions for a range.

    Args:
        dialect: Target dialect.
        namespace: Namespace every row must belong to.
        options: Outer range bounds.
        cursor: Keyset position; rows at or before it (in scan order) are excluded.
        cursor_inclusive: Keep the cursor key itself.

    Returns:
        Tuple of (conditions joined with AND, params).
    """
    p = dialect.placeholder
    conditions = [f"namespace = {p}"]
    params: list[Any] = [namespace]

    for bound in (options.lower, options.upper):
        if bound is not None:
            op, key = bound
            conditions.append(f"{dialect.key} {op} {p}")
            params.append(key)

    if cursor is not None:
        if options.reverse:
            op = "<=" if cursor_inclusive else "<"
        else:
            op = ">=" if cursor_inclusive else ">"
        conditions.append(f"{dialect.key} {op} {p}")
        params.append(cursor)

    return " AND ".join(conditions), params


def order_by(dialect: Dialect, reverse: bool) -> str:
    return f"ORDER BY {dialect.key} {'DESC' if reverse else 'ASC'}"


def select_value(dialect: Dialect, namespace: str, key: str) -> Query:
    p = dialect.placeholder
    return (
        f"SELECT value FROM {TABLE} WHERE namespace = {p} AND key = {p}",
        [namespace, key],
    )


def select_exists(dialect: Dialect, namespace: str, key: str) -> Query:
    p = dialect.placeholder
    return (
        f"SELECT 1 FROM {TABLE} WHERE namespace = {p} AND key = {p}",
        [namespace, key],
    )


def select_many(dialect: Dialect, namespace: str, keys: list[str]) -> Query:
    """Single IN-list lookup; callers pass keys already de-duplicated."""
    p = dialect.placeholder
    return (
        f"SELECT key, value FROM {TABLE} "
        f"WHERE namespace = {p} AND key IN ({dialect.placeholders(len(keys))})",
        [namespace, *keys],
    )


def upsert(dialect: Dialect, namespace: str, key: str, value: str) -> Query:
    p = dialect.placeholder
    return (
        f"INSERT INTO {TABLE} (namespace, key, value) VALUES ({p}, {p}, {p}) "
        "ON CONFLICT (namespace, key) DO UPDATE SET value = excluded.value",
        [namespace, key, value],
    )


def delete_key(dialect: Dialect, namespace: str, key: str) -> Query:
    p = dialect.placeholder
    return (
        f"DELETE FROM {TABLE} WHERE namespace = {p} AND key = {p}",
        [namespace, key],
    )


def clear_range(dialect: Dialect, namespace: str, options: RangeOptions) -> Query:
    """
    Delete the rows of a range.

    Without a limit this is one bulk DELETE. With a limit, exactly the first
    `limit` keys in scan order are selected and deleted in the same statement.
    """
    where, params = range_conditions(dialect, namespace, options)
    if not options.bounded:
        return f"DELETE FROM {TABLE} WHERE {where}", params

    p = dialect.placeholder
    sql = (
        f"DELETE FROM {TABLE} WHERE namespace = {p} AND key IN ("
        f"SELECT key FROM {TABLE} WHERE {where} "
        f"{order_by(dialect, options.reverse)} LIMIT {p})"
    )
    return sql, [namespace, *params, options.limit]


def select_page(
    dialect: Dialect,
    namespace: str,
    options: RangeOptions,
    cursor: str | None,
    cursor_inclusive: bool,
    size: int,
) -> Query:
    """
    Fetch one page of a range scan.

    The key column is always selected first so the scan can advance its
    keyset cursor; the value column is added only when values are wanted.
    """
    where, params = range_conditions(dialect, namespace, options, cursor, cursor_inclusive)
    columns = "key, value" if options.values else "key"
    sql = (
        f"SELECT {columns} FROM {TABLE} WHERE {where} "
        f"{order_by(dialect, options.reverse)} LIMIT {dialect.placeholder}"
    )
    return sql, [*params, size]


def server_version(dialect: Dialect) -> str:
    if dialect.name == "sqlite":
        return "SELECT 'SQLite ' || sqlite_version()"
    return "SELECT version()"


def table_exists(dialect: Dialect) -> Query:
    p = dialect.placeholder
    if dialect.name == "sqlite":
        sql = f"SELECT EXISTS (SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = {p})"
    else:
        sql = f"SELECT EXISTS (SELECT 1 FROM information_schema.tables WHERE table_name = {p})"
    return sql, [TABLE]


def count_rows(dialect: Dialect, namespace: str | None = None) -> Query:
    if namespace is None:
        return f"SELECT COUNT(*) FROM {TABLE}", []
    return f"SELECT COUNT(*) FROM {TABLE} WHERE namespace = {dialect.placeholder}", [namespace]
