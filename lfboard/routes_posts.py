import sqlite3

from flask import jsonify, request, send_from_directory

from lfboard.media_utils import MediaUploadError, allowed_image, read_upload, upload_images
from lfboard.post_form_utils import (
    MAX_IMAGES,
    first_error_message,
    read_post_fields_from_form,
    validate_post_fields,
    validate_resolution_payload,
)
from lfboard.post_store import create_post, get_all_posts, sanitize_post
from lfboard.resolution import ResolutionError, resolve_as_found, resolve_as_returned
from lfboard.signals import post_created, post_resolved


def register_post_routes(app, deps: dict):
    get_db = deps["get_db"]
    get_uploader = deps["get_uploader"]
    client_ip = deps["client_ip"]
    UPLOAD_DIR = deps["UPLOAD_DIR"]
    MAX_IMAGE_BYTES = deps["MAX_IMAGE_BYTES"]
    UPLOAD_MAX_WORKERS = deps["UPLOAD_MAX_WORKERS"]

    def error_response(message, status, errors=None):
        body = {"message": message}
        if errors:
            body["errors"] = errors
        return jsonify(body), status

    @app.get("/api/posts")
    def list_posts():
        conn = None
        try:
            conn = get_db()
            posts = get_all_posts(conn)
        except sqlite3.Error:
            app.logger.exception("Error fetching posts")
            return error_response("Failed to fetch posts", 500)
        finally:
            if conn is not None:
                conn.close()

        resp = jsonify([sanitize_post(p) for p in posts])
        resp.add_etag()
        return resp.make_conditional(request)

    @app.post("/api/posts")
    def create_post_route():
        files = [f for f in request.files.getlist("images") if f and f.filename]
        if len(files) > MAX_IMAGES:
            return error_response(f"Maximum {MAX_IMAGES} images allowed", 400)

        images = []
        for f in files:
            if not allowed_image(f):
                return error_response("Only image files are allowed", 400)
            data = read_upload(f, MAX_IMAGE_BYTES)
            if data is None:
                return error_response(f"Image '{f.filename}' is too large", 400)
            images.append((data, f.filename))

        try:
            image_urls = upload_images(get_uploader(), images, max_workers=UPLOAD_MAX_WORKERS)
        except MediaUploadError:
            app.logger.exception("Error uploading images count=%s", len(images))
            return error_response("Failed to upload images", 500)

        fields = read_post_fields_from_form(request)
        fields["imageUrls"] = image_urls
        ok, errors = validate_post_fields(fields)
        if not ok:
            return error_response(first_error_message(errors), 400, errors)

        conn = None
        try:
            conn = get_db()
            post = create_post(conn, fields)
        except sqlite3.Error:
            if conn is not None:
                conn.rollback()
            app.logger.exception("Error creating post type=%s", fields["type"])
            return error_response("Failed to create post", 500)
        finally:
            if conn is not None:
                conn.close()

        public = sanitize_post(post)
        post_created.send(app, post=public)
        return jsonify(public), 201

    def handle_resolution(resolve, outcome: str):
        ok, data = validate_resolution_payload(request.get_json(silent=True))
        if not ok:
            return error_response(first_error_message(data), 400, data)

        conn = None
        try:
            conn = get_db()
            post = resolve(conn, data["id"], data["secret"])
        except ResolutionError as e:
            app.logger.warning(
                "mark-%s rejected post_id=%s reason=%s ip=%s",
                outcome,
                data["id"],
                e.kind,
                client_ip(request),
            )
            return error_response(e.message, 400)
        except sqlite3.Error:
            app.logger.exception("Error marking post as %s post_id=%s", outcome, data["id"])
            return error_response(f"Failed to mark post as {outcome}", 500)
        finally:
            if conn is not None:
                conn.close()

        public = sanitize_post(post)
        post_resolved.send(app, post=public, outcome=outcome)
        return jsonify(public)

    @app.post("/api/mark-found")
    def mark_found():
        return handle_resolution(resolve_as_found, "found")

    @app.post("/api/mark-returned")
    def mark_returned():
        return handle_resolution(resolve_as_returned, "returned")

    @app.get("/uploads/<path:filename>")
    def uploaded_file(filename):
        return send_from_directory(UPLOAD_DIR, filename)
