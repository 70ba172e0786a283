import secrets
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path

from werkzeug.utils import secure_filename


ALLOWED_EXTS = {"png", "jpg", "jpeg", "webp", "gif"}


class MediaUploadError(Exception):
    pass


def allowed_image(file_storage) -> bool:
    mimetype = (file_storage.mimetype or "").lower()
    if not mimetype.startswith("image/"):
        return False
    filename = file_storage.filename or ""
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTS


class LocalUploader:
    """Stores images under ``upload_dir`` and hands back their public URL."""

    def __init__(self, upload_dir, base_url: str):
        self.upload_dir = Path(upload_dir)
        self.base_url = base_url.rstrip("/")

    def __call__(self, data: bytes, filename: str) -> str:
        safe = secure_filename(filename) or "image"
        ext = safe.rsplit(".", 1)[1].lower() if "." in safe else "bin"
        stamp = int(datetime.now(timezone.utc).timestamp())
        name = f"post_{stamp}_{secrets.token_hex(8)}.{ext}"
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        (self.upload_dir / name).write_bytes(data)
        return f"{self.base_url}/uploads/{name}"


def read_upload(file_storage, max_bytes: int):
    data = file_storage.read(max_bytes + 1)
    if len(data) > max_bytes:
        return None
    return data


def upload_images(uploader, images, max_workers: int = 5):
    """Upload ``(data, filename)`` pairs in parallel.

    Returns the URLs in the order the images were given. If any single upload
    fails the whole batch fails with ``MediaUploadError``.
    """
    if not images:
        return []
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(images)))) as pool:
        futures = [pool.submit(uploader, data, filename) for data, filename in images]
        urls = []
        failure = None
        for fut in futures:
            try:
                urls.append(fut.result())
            except Exception as exc:
                failure = failure or exc
    if failure is not None:
        raise MediaUploadError(str(failure) or "Image upload failed") from failure
    return urls
