import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from lfboard.db_utils import get_db, init_db  # noqa: E402
from lfboard.post_store import create_post, get_all_posts, get_post, sanitize_post  # noqa: E402
from lfboard.resolution import (  # noqa: E402
    ALREADY_RESOLVED,
    NO_SECRET_SET,
    NOT_FOUND,
    SECRET_MISMATCH,
    WRONG_OPERATION_FOR_TYPE,
    ResolutionError,
    check_resolution,
    resolve_as_found,
    resolve_as_returned,
)


def open_conn(tmp_path):
    db_path = str(tmp_path / "board.db")
    init_db(db_path)
    return get_db(db_path)


def new_post(conn, kind="lost", secret="pass1234", title="Blue backpack"):
    return create_post(
        conn,
        {
            "type": kind,
            "title": title,
            "description": None,
            "imageUrls": [],
            "contactEmail": None,
            "contactPhone": None,
            "secret": secret,
        },
    )


def test_create_post_assigns_id_and_defaults(tmp_path):
    conn = open_conn(tmp_path)
    post = new_post(conn)
    assert post["id"] == 1
    assert post["isResolved"] is False
    assert post["secret"] == "pass1234"
    assert post["imageUrls"] == []
    assert post["createdAt"]
    assert "secret" not in sanitize_post(post)
    conn.close()


def test_get_post_missing_returns_none(tmp_path):
    conn = open_conn(tmp_path)
    assert get_post(conn, 42) is None
    conn.close()


def test_get_all_posts_newest_first(tmp_path):
    conn = open_conn(tmp_path)
    for title in ("First", "Second", "Third"):
        new_post(conn, title=title)
    posts = get_all_posts(conn)
    assert [p["title"] for p in posts] == ["Third", "Second", "First"]
    created = [p["createdAt"] for p in posts]
    assert created == sorted(created, reverse=True)
    conn.close()


def test_resolve_as_found_marks_lost_post(tmp_path):
    conn = open_conn(tmp_path)
    post = new_post(conn)
    updated = resolve_as_found(conn, post["id"], "pass1234")
    assert updated["isResolved"] is True
    assert get_post(conn, post["id"])["isResolved"] is True
    conn.close()


def test_resolve_as_returned_marks_found_post(tmp_path):
    conn = open_conn(tmp_path)
    post = new_post(conn, kind="found", secret="xyz789")
    updated = resolve_as_returned(conn, post["id"], "xyz789")
    assert updated["isResolved"] is True
    conn.close()


def test_unknown_post_is_not_found(tmp_path):
    conn = open_conn(tmp_path)
    with pytest.raises(ResolutionError) as exc:
        resolve_as_found(conn, 999, "pass1234")
    assert exc.value.kind == NOT_FOUND
    assert exc.value.message == "Post not found"
    conn.close()


def test_type_mismatch_wins_over_correct_secret(tmp_path):
    conn = open_conn(tmp_path)
    found_post = new_post(conn, kind="found", secret="xyz789")
    lost_post = new_post(conn, kind="lost", secret="pass1234")

    with pytest.raises(ResolutionError) as exc:
        resolve_as_found(conn, found_post["id"], "xyz789")
    assert exc.value.kind == WRONG_OPERATION_FOR_TYPE
    assert exc.value.message == "Only lost items can be marked as found"

    with pytest.raises(ResolutionError) as exc:
        resolve_as_returned(conn, lost_post["id"], "pass1234")
    assert exc.value.message == "Only found items can be marked as returned"

    assert get_post(conn, found_post["id"])["isResolved"] is False
    assert get_post(conn, lost_post["id"])["isResolved"] is False
    conn.close()


def test_second_resolution_is_rejected(tmp_path):
    conn = open_conn(tmp_path)
    post = new_post(conn, kind="found", secret="xyz789")
    resolve_as_returned(conn, post["id"], "xyz789")
    with pytest.raises(ResolutionError) as exc:
        resolve_as_returned(conn, post["id"], "xyz789")
    assert exc.value.kind == ALREADY_RESOLVED
    assert exc.value.message == "This item is already marked as returned"
    conn.close()


def test_legacy_post_without_secret_cannot_be_resolved(tmp_path):
    conn = open_conn(tmp_path)
    post = new_post(conn, secret=None)
    with pytest.raises(ResolutionError) as exc:
        resolve_as_found(conn, post["id"], "anything")
    assert exc.value.kind == NO_SECRET_SET
    assert get_post(conn, post["id"])["isResolved"] is False
    conn.close()


def test_secret_comparison_is_case_sensitive(tmp_path):
    conn = open_conn(tmp_path)
    post = new_post(conn, secret="Abcd")
    with pytest.raises(ResolutionError) as exc:
        resolve_as_found(conn, post["id"], "abcd")
    assert exc.value.kind == SECRET_MISMATCH
    assert exc.value.message == "Incorrect secret password"
    assert get_post(conn, post["id"])["isResolved"] is False
    assert resolve_as_found(conn, post["id"], "Abcd")["isResolved"] is True
    conn.close()


def test_secret_is_not_trimmed(tmp_path):
    conn = open_conn(tmp_path)
    post = new_post(conn, secret="pass1234")
    with pytest.raises(ResolutionError) as exc:
        resolve_as_found(conn, post["id"], " pass1234 ")
    assert exc.value.kind == SECRET_MISMATCH
    conn.close()


def test_check_resolution_guard_order():
    resolved_found = {"type": "found", "isResolved": True, "secret": None}
    # type mismatch is reported before the resolved and secret checks
    assert check_resolution(resolved_found, "found", "x").kind == WRONG_OPERATION_FOR_TYPE
    # already resolved is reported before the missing secret
    assert check_resolution(resolved_found, "returned", "x").kind == ALREADY_RESOLVED
    assert check_resolution(None, "returned", "x").kind == NOT_FOUND
    open_lost = {"type": "lost", "isResolved": False, "secret": "pässwörd"}
    assert check_resolution(open_lost, "found", "pässwörd") is None


def test_get_post_outside_integer_range_is_absent(tmp_path):
    conn = open_conn(tmp_path)
    new_post(conn)
    assert get_post(conn, 10**20) is None
    assert get_post(conn, -(10**20)) is None
    with pytest.raises(ResolutionError) as exc:
        resolve_as_found(conn, 2**63, "pass1234")
    assert exc.value.kind == NOT_FOUND
    conn.close()
