"""
Migration V1 -> V2
- Adds 'is_active' and 'last_login_at' columns to users if missing
- Backfills orders.seller_email from orders.seller when the label is an email
  and no email was captured at creation time

Usage:
  python -m migration.migrate_users_v2 --db path/to/telar.db
"""
import argparse
import logging
import os
import sqlite3
from contextlib import closing

logger = logging.getLogger(__name__)


def has_column(conn: sqlite3.Connection, table: str, column: str) -> bool:
    cur = conn.execute(f"PRAGMA table_info({table})")
    return any(row[1] == column for row in cur.fetchall())


def migrate(db_path: str) -> int:
    """Apply the migration in place; returns the number of orders backfilled."""
    if db_path == ":memory:":
        raise ValueError("Use a file-backed DB for migration script")

    if not os.path.exists(db_path):
        raise FileNotFoundError(db_path)

    with closing(sqlite3.connect(db_path)) as conn:
        conn.execute("PRAGMA foreign_keys=ON")

        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        for required in ("users", "orders"):
            if required not in tables:
                raise RuntimeError(f"{required} table missing; cannot migrate")

        if not has_column(conn, "users", "is_active"):
            conn.execute("ALTER TABLE users ADD COLUMN is_active BOOLEAN NOT NULL DEFAULT 1")
        if not has_column(conn, "users", "last_login_at"):
            conn.execute("ALTER TABLE users ADD COLUMN last_login_at DATETIME")
        if not has_column(conn, "orders", "seller_email"):
            conn.execute("ALTER TABLE orders ADD COLUMN seller_email VARCHAR")

        cur = conn.execute(
            "UPDATE orders SET seller_email = seller "
            "WHERE seller_email IS NULL AND seller LIKE '%_@_%'"
        )
        backfilled = cur.rowcount
        conn.commit()

    logger.info("migrated %s, %d orders backfilled", db_path, backfilled)
    return backfilled


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--db", required=True, help="Path to SQLite database file")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    migrate(args.db)


if __name__ == "__main__":
    main()
