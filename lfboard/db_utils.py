import sqlite3
from datetime import datetime, timezone


def get_db(db_path: str):
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def now_utc():
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def ensure_column(conn, table, col_name, col_def_sql):
    cols = [r["name"] for r in conn.execute(f"PRAGMA table_info({table})").fetchall()]
    if col_name not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {col_name} {col_def_sql}")


def is_truthy(raw: str | None) -> bool:
    return (raw or "").strip().lower() in {"1", "true", "yes", "on"}


def init_db(db_path: str):
    conn = get_db(db_path)

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS posts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            type TEXT NOT NULL CHECK (type IN ('lost', 'found')),
            title TEXT NOT NULL,
            description TEXT,
            image_urls TEXT NOT NULL DEFAULT '[]',
            contact_email TEXT,
            contact_phone TEXT,
            is_resolved INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        )
        """
    )
    # Boards created before resolution passwords existed have no secret column.
    ensure_column(conn, "posts", "secret", "TEXT")
    conn.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_posts_created
        ON posts (created_at DESC, id DESC)
        """
    )

    conn.commit()
    conn.close()
