import logging
import os
import time
from pathlib import Path

from flask import Flask, g, jsonify, request

from lfboard.db_utils import get_db as open_db, init_db
from lfboard.media_utils import LocalUploader
from lfboard.routes_posts import register_post_routes
from lfboard.security_utils import client_ip, parse_proxy_networks
from lfboard.signals import post_created, post_resolved


DEFAULT_DATA_DIR = "/app/data"
DEFAULT_UPLOAD_DIR = "/app/uploads"
DEFAULT_MAX_CONTENT_LENGTH = 20 * 1024 * 1024
DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024
DEFAULT_TRUSTED_PROXY_CIDRS = "127.0.0.1/32,::1/128,172.16.0.0/12"


def load_config(overrides: dict | None = None) -> dict:
    config = {
        "DATA_DIR": os.environ.get("DATA_DIR", DEFAULT_DATA_DIR),
        "UPLOAD_DIR": os.environ.get("UPLOAD_DIR", DEFAULT_UPLOAD_DIR),
        "BASE_URL": os.environ.get("BASE_URL", "").strip(),  # e.g. https://board.example
        "MAX_CONTENT_LENGTH": int(os.environ.get("MAX_CONTENT_LENGTH", str(DEFAULT_MAX_CONTENT_LENGTH))),
        "MAX_IMAGE_BYTES": int(os.environ.get("MAX_IMAGE_BYTES", str(DEFAULT_MAX_IMAGE_BYTES))),
        "UPLOAD_MAX_WORKERS": int(os.environ.get("UPLOAD_MAX_WORKERS", "5")),
        "TRUSTED_PROXY_CIDRS": os.environ.get("TRUSTED_PROXY_CIDRS", DEFAULT_TRUSTED_PROXY_CIDRS),
        "LOG_LEVEL": os.environ.get("LOG_LEVEL", "INFO").upper(),
        "MEDIA_UPLOADER": None,
    }
    config.update(overrides or {})
    return config


def create_app(overrides: dict | None = None):
    config = load_config(overrides)

    app = Flask(__name__)
    app.config.update(config)
    app.logger.setLevel(getattr(logging, config["LOG_LEVEL"], logging.INFO))

    data_dir = Path(config["DATA_DIR"])
    data_dir.mkdir(parents=True, exist_ok=True)
    upload_dir = Path(config["UPLOAD_DIR"])
    upload_dir.mkdir(parents=True, exist_ok=True)
    db_path = str(data_dir / "lostfound.db")
    app.config["DB_PATH"] = db_path

    trusted_proxy_networks = parse_proxy_networks(config["TRUSTED_PROXY_CIDRS"])
    state = {"db_inited": False}

    def get_db():
        return open_db(db_path)

    def get_uploader():
        if app.config.get("MEDIA_UPLOADER") is not None:
            return app.config["MEDIA_UPLOADER"]
        base_url = app.config["BASE_URL"] or request.host_url
        return LocalUploader(upload_dir, base_url)

    # -------------------------
    # Request lifecycle
    # -------------------------
    @app.before_request
    def _ensure_db():
        if not state["db_inited"]:
            init_db(db_path)
            state["db_inited"] = True

    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def _log_api_request(response):
        if request.path.startswith("/api"):
            started = g.get("request_started", time.perf_counter())
            duration_ms = int((time.perf_counter() - started) * 1000)
            app.logger.info("%s %s %s in %sms", request.method, request.path, response.status_code, duration_ms)
        return response

    # -------------------------
    # Board change events
    # -------------------------
    def _on_post_created(sender, post, **_extra):
        sender.logger.info("Post created id=%s type=%s; board list invalidated.", post["id"], post["type"])

    def _on_post_resolved(sender, post, outcome, **_extra):
        sender.logger.info("Post id=%s marked as %s; board list invalidated.", post["id"], outcome)

    post_created.connect(_on_post_created, app, weak=False)
    post_resolved.connect(_on_post_resolved, app, weak=False)

    register_post_routes(
        app,
        {
            "get_db": get_db,
            "get_uploader": get_uploader,
            "client_ip": lambda req: client_ip(req, trusted_proxy_networks),
            "UPLOAD_DIR": upload_dir,
            "MAX_IMAGE_BYTES": config["MAX_IMAGE_BYTES"],
            "UPLOAD_MAX_WORKERS": config["UPLOAD_MAX_WORKERS"],
        },
    )

    # -------------------------
    # Errors
    # -------------------------
    @app.errorhandler(404)
    def not_found(e):
        if request.path.startswith("/api"):
            return jsonify({"message": "Not found"}), 404
        return e

    @app.errorhandler(405)
    def method_not_allowed(_):
        return jsonify({"message": "Method not allowed"}), 405

    @app.errorhandler(413)
    def too_large(_):
        return jsonify({"message": "Upload is too large"}), 413

    @app.errorhandler(500)
    def internal_error(_):
        return jsonify({"message": "Internal Server Error"}), 500

    # -------------------------
    # CLI
    # -------------------------
    @app.cli.command("init-db")
    def init_db_command():
        """Create or migrate the posts table."""
        init_db(db_path)
        state["db_inited"] = True
        print(f"Initialized database at {db_path}")

    return app
