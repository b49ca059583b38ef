"""
Connection check for a pglevel backend.

Connects with the configured URL, reports the server version, whether the
store table exists and how many rows it holds.

Usage:
    python -m pglevel.check [--url URL] [--namespace NAMESPACE]
"""

import argparse
import asyncio
import logging
import os
import sys
from urllib.parse import urlsplit

from dotenv import load_dotenv

from pglevel.config import StoreConfig
from pglevel.store import queries

logger = logging.getLogger(__name__)

# SQLSTATE codes with a known fix
_SQLSTATE_HINTS = {
    "28P01": "Invalid username or password",
    "3D000": "Database does not exist",
}


def mask_url(url: str) -> str:
    """
    Hide the password part of a connection URL.

    The userinfo ends at the last "@" of the authority, so unescaped "/",
    ":" or "@" characters inside the password are masked as well.
    """
    if not urlsplit(url).scheme or "@" not in url:
        return url
    prefix, _, rest = url.partition("://")
    userinfo, _, location = rest.rpartition("@")
    user, sep, _ = userinfo.partition(":")
    if not sep:
        return url
    return f"{prefix}://{user}:****@{location}"


def failure_hint(error: BaseException) -> str | None:
    """Return a hint for common connection failures, if one applies."""
    sqlstate = getattr(error, "sqlstate", None)
    if sqlstate in _SQLSTATE_HINTS:
        return _SQLSTATE_HINTS[sqlstate]
    if "connection refused" in str(error).lower():
        return "Make sure PostgreSQL is running and accessible"
    return None


async def run_check(config: StoreConfig, namespace: str | None = None) -> dict:
    """
    Query the backend for its version, table presence and row count.

    Args:
        config: Connection settings.
        namespace: Count only the rows of this namespace.

    Returns:
        Dict with keys 'version', 'table_exists' and 'rows' (None when the
        table does not exist yet).
    """
    pool = config.create_pool()
    dialect = pool.dialect
    async with pool:
        version_rows = await pool.execute(queries.server_version(dialect))
        exists_rows = await pool.execute(*queries.table_exists(dialect))
        table_exists = bool(exists_rows[0][0])

        rows = None
        if table_exists:
            count_rows = await pool.execute(*queries.count_rows(dialect, namespace))
            rows = count_rows[0][0]

    return {
        "version": version_rows[0][0].split(",")[0],
        "table_exists": table_exists,
        "rows": rows,
    }


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    load_dotenv()

    parser = argparse.ArgumentParser(description="Check the pglevel backend connection")
    parser.add_argument("--url", help="Connection URL (default: PGLEVEL_URL or POSTGRES_URL)")
    parser.add_argument("--namespace", help="Only count rows of this namespace")
    args = parser.parse_args(argv)

    try:
        config = StoreConfig(url=args.url) if args.url else StoreConfig.from_env()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    print(f"Testing {config.backend} connection...")
    print(f"   URL: {mask_url(config.url)}")

    try:
        report = asyncio.run(run_check(config, args.namespace))
    except Exception as e:
        logger.debug("Connection check failed", exc_info=True)
        print(f"Connection failed: {e}", file=sys.stderr)
        hint = failure_hint(e)
        if hint:
            print(f"   -> {hint}", file=sys.stderr)
        return 1

    print(f"Connected. Server version: {report['version']}")
    if report["table_exists"]:
        scope = f" (namespace {args.namespace!r})" if args.namespace else ""
        print(f"Table {queries.TABLE} exists with {report['rows']} rows{scope}")
    else:
        print(f"Table {queries.TABLE} does not exist yet (created on first store operation)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
