import secrets

from lfboard.post_store import get_post, set_resolved


NOT_FOUND = "not_found"
WRONG_OPERATION_FOR_TYPE = "wrong_operation_for_type"
ALREADY_RESOLVED = "already_resolved"
NO_SECRET_SET = "no_secret_set"
SECRET_MISMATCH = "secret_mismatch"

# outcome -> post type that may reach it
RESOLVABLE_TYPES = {
    "found": "lost",
    "returned": "found",
}


class ResolutionError(Exception):
    def __init__(self, kind: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


def secrets_match(stored: str, supplied: str) -> bool:
    return secrets.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))


def check_resolution(post, outcome: str, supplied_secret: str):
    """Decide whether ``post`` may be marked with ``outcome``.

    Returns ``None`` when the transition is legal, otherwise the
    ``ResolutionError`` to report. The guards run in a fixed order so the same
    request always yields the same error.
    """
    required_type = RESOLVABLE_TYPES[outcome]
    if post is None:
        return ResolutionError(NOT_FOUND, "Post not found")
    if post["type"] != required_type:
        return ResolutionError(
            WRONG_OPERATION_FOR_TYPE,
            f"Only {required_type} items can be marked as {outcome}",
        )
    if post["isResolved"]:
        return ResolutionError(ALREADY_RESOLVED, f"This item is already marked as {outcome}")
    if not post.get("secret"):
        return ResolutionError(NO_SECRET_SET, "This post has no secret set")
    if not secrets_match(post["secret"], supplied_secret):
        return ResolutionError(SECRET_MISMATCH, "Incorrect secret password")
    return None


def resolve_post(conn, post_id: int, supplied_secret: str, outcome: str):
    post = get_post(conn, post_id)
    error = check_resolution(post, outcome, supplied_secret)
    if error is not None:
        raise error

    return set_resolved(conn, post_id)


def resolve_as_found(conn, post_id: int, supplied_secret: str):
    return resolve_post(conn, post_id, supplied_secret, "found")


def resolve_as_returned(conn, post_id: int, supplied_secret: str):
    return resolve_post(conn, post_id, supplied_secret, "returned")
