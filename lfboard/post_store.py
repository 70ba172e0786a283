import json

from lfboard.db_utils import now_utc


SQLITE_MIN_INT = -(2**63)
SQLITE_MAX_INT = 2**63 - 1

POST_COLUMNS = """
    id, type, title, description, image_urls, contact_email, contact_phone,
    secret, is_resolved, created_at
"""


def row_to_post(row):
    if row is None:
        return None
    return {
        "id": int(row["id"]),
        "type": row["type"],
        "title": row["title"],
        "description": row["description"],
        "imageUrls": json.loads(row["image_urls"] or "[]"),
        "contactEmail": row["contact_email"],
        "contactPhone": row["contact_phone"],
        "secret": row["secret"],
        "isResolved": bool(row["is_resolved"]),
        "createdAt": row["created_at"],
    }


def sanitize_post(post: dict) -> dict:
    """Public view of a post: everything except the resolution secret."""
    return {k: v for k, v in post.items() if k != "secret"}


def get_all_posts(conn):
    rows = conn.execute(
        f"""
        SELECT {POST_COLUMNS}
        FROM posts
        ORDER BY created_at DESC, id DESC
        """
    ).fetchall()
    return [row_to_post(r) for r in rows]


def get_post(conn, post_id: int):
    # ids outside the INTEGER range cannot exist in the table
    if not SQLITE_MIN_INT <= post_id <= SQLITE_MAX_INT:
        return None
    row = conn.execute(f"SELECT {POST_COLUMNS} FROM posts WHERE id=?", (post_id,)).fetchone()
    return row_to_post(row)


def create_post(conn, fields: dict):
    cur = conn.execute(
        """
        INSERT INTO posts (
            type, title, description, image_urls, contact_email, contact_phone,
            secret, is_resolved, created_at
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, 0, ?)
        """,
        (
            fields["type"],
            fields["title"],
            fields.get("description"),
            json.dumps(list(fields.get("imageUrls") or [])),
            fields.get("contactEmail"),
            fields.get("contactPhone"),
            fields.get("secret"),
            now_utc(),
        ),
    )
    post_id = cur.lastrowid
    conn.commit()
    return get_post(conn, post_id)


def set_resolved(conn, post_id: int):
    conn.execute("UPDATE posts SET is_resolved=1 WHERE id=?", (post_id,))
    conn.commit()
    return get_post(conn, post_id)
