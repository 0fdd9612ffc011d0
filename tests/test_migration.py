import os
import sqlite3
import tempfile

import pytest

from migration.migrate_users_v2 import migrate


def create_v1_db(path: str):
    conn = sqlite3.connect(path)
    try:
        conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, email TEXT NOT NULL, role TEXT NOT NULL, password_hash TEXT NOT NULL)")
        conn.execute("CREATE TABLE orders (seq INTEGER PRIMARY KEY, id TEXT NOT NULL, seller TEXT NOT NULL)")
        # Seed data
        conn.execute("INSERT INTO users (name, email, role, password_hash) VALUES ('Ana', 'ana@telar.co', 'vendedora', 'x')")
        conn.execute("INSERT INTO orders (id, seller) VALUES ('a', 'ana@telar.co'), ('b', 'Ana')")
        conn.commit()
    finally:
        conn.close()


def test_migration_adds_columns_and_backfills():
    with tempfile.TemporaryDirectory() as tmp:
        db_path = os.path.join(tmp, "test.db")
        create_v1_db(db_path)

        assert migrate(db_path) == 1
        # second run is a no-op
        assert migrate(db_path) == 0

        conn = sqlite3.connect(db_path)
        try:
            cols = [r[1] for r in conn.execute("PRAGMA table_info(users)").fetchall()]
            assert "is_active" in cols and "last_login_at" in cols
            assert conn.execute("SELECT is_active FROM users").fetchone()[0] == 1

            rows = conn.execute("SELECT id, seller_email FROM orders ORDER BY id").fetchall()
            assert rows == [("a", "ana@telar.co"), ("b", None)]
        finally:
            conn.close()


def test_migration_requires_file():
    with pytest.raises(ValueError):
        migrate(":memory:")
    with pytest.raises(FileNotFoundError):
        migrate("/nonexistent/telar.db")
