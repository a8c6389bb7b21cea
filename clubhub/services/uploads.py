"""Announcement image uploads, stored on local disk and served under /uploads."""
import logging
import secrets
import time
from pathlib import Path

from fastapi import UploadFile

from clubhub.config import get_settings
from clubhub.errors import ValidationError

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"
ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}


def uploads_path() -> Path:
    path = Path(get_settings().uploads_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_announcement_image(file: UploadFile) -> str:
    """Validate and store an image; returns its public URL path."""
    settings = get_settings()
    ext = Path(file.filename or "").suffix.lower()
    if ext not in ALLOWED_EXTENSIONS or (file.content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        raise ValidationError("Only image files allowed!")

    content = file.file.read(settings.max_upload_bytes + 1)
    if not content:
        raise ValidationError("Image file is empty.")
    if len(content) > settings.max_upload_bytes:
        raise ValidationError(f"Image too large (max {settings.max_upload_bytes // (1024 * 1024)}MB)")

    filename = f"announcement-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"
    (uploads_path() / filename).write_bytes(content)
    logger.info("Stored announcement image %s (%d bytes)", filename, len(content))
    return f"{URL_PREFIX}/{filename}"
