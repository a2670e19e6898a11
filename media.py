"""
Uploaded images: stored in the remote object store when it is configured,
otherwise in a local directory served under ``/uploads/``.
"""

import logging
import re
import time
from pathlib import Path
from typing import List, Optional

from blob import BlobClient
from schemas import MediaImage
from storage import atomic_write_bytes

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 5 * 1024 * 1024
ALLOWED_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
}
UPLOADS_PREFIX = "uploads/"


class MediaError(Exception):
    pass


class InvalidMedia(MediaError):
    pass


class MediaNotFound(MediaError):
    pass


def sanitize_filename(name: str) -> str:
    name = re.sub(r"[^a-z0-9._-]", "-", name.lower())
    name = re.sub(r"-+", "-", name)
    return name.strip("-")


def upload_pathname(original_name: str, timestamp_ms: Optional[int] = None) -> str:
    """``uploads/<epoch ms>-<sanitized base><ext>`` for an uploaded file."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    base, dot, ext = (original_name or "").rpartition(".")
    if not dot:
        base, ext = original_name or "", "jpg"
    ext = re.sub(r"[^a-z0-9]", "", ext.lower()) or "jpg"
    base = sanitize_filename(base) or "image"
    return f"{UPLOADS_PREFIX}{timestamp_ms}-{base}.{ext}"


def check_upload(content_type: Optional[str], size: int) -> None:
    if content_type not in ALLOWED_TYPES:
        raise InvalidMedia("File type not allowed. Use JPEG, PNG, GIF, WebP, or SVG.")
    if size > MAX_FILE_SIZE:
        raise InvalidMedia("File too large. Maximum size is 5 MB.")


def check_filename(filename: str) -> None:
    if not filename or ".." in filename or "/" in filename or "\\" in filename:
        raise InvalidMedia("Invalid filename")


class MediaLibrary:
    name = "none"

    def list(self) -> List[MediaImage]:
        return []

    def upload(self, original_name: str, content_type: Optional[str], data: bytes) -> MediaImage:
        raise MediaError("No media storage configured")

    def delete(self, filename: str) -> None:
        raise MediaError("No media storage configured")


class BlobMediaLibrary(MediaLibrary):
    name = "blob"

    def __init__(self, client: BlobClient):
        self.client = client

    def list(self) -> List[MediaImage]:
        return [
            MediaImage(filename=b.pathname, url=b.url)
            for b in self.client.list_blobs(prefix=UPLOADS_PREFIX)
        ]

    def upload(self, original_name, content_type, data):
        check_upload(content_type, len(data))
        blob = self.client.put(upload_pathname(original_name), data, content_type=content_type, overwrite=False)
        logger.info("Uploaded %s (%d bytes)", blob.pathname, len(data))
        return MediaImage(filename=blob.pathname, url=blob.url)

    def delete(self, filename):
        check_filename(filename)
        wanted = {filename, UPLOADS_PREFIX + filename}
        blob = next((b for b in self.client.list_blobs() if b.pathname in wanted), None)
        if blob is None:
            raise MediaNotFound(filename)
        self.client.delete(blob.url)
        logger.info("Deleted %s", blob.pathname)


class LocalMediaLibrary(MediaLibrary):
    name = "local"

    def __init__(self, directory: Path, url_prefix: str = "/uploads"):
        self.directory = Path(directory)
        self.url_prefix = url_prefix.rstrip("/")

    def _image(self, path: Path) -> MediaImage:
        return MediaImage(filename=UPLOADS_PREFIX + path.name, url=f"{self.url_prefix}/{path.name}")

    def list(self) -> List[MediaImage]:
        if not self.directory.is_dir():
            return []
        return [
            self._image(p)
            for p in sorted(self.directory.iterdir())
            if p.is_file() and not p.name.startswith(".")
        ]

    def upload(self, original_name, content_type, data):
        check_upload(content_type, len(data))
        path = self.directory / upload_pathname(original_name)[len(UPLOADS_PREFIX):]
        atomic_write_bytes(path, data)
        logger.info("Uploaded %s (%d bytes)", path, len(data))
        return self._image(path)

    def delete(self, filename):
        check_filename(filename)
        path = self.directory / filename
        if not path.is_file():
            raise MediaNotFound(filename)
        path.unlink()
        logger.info("Deleted %s", path)


def build_media_library(uploads_dir: Optional[Path], client: Optional[BlobClient] = None) -> MediaLibrary:
    if client is not None:
        return BlobMediaLibrary(client)
    if uploads_dir is not None:
        return LocalMediaLibrary(uploads_dir)
    return MediaLibrary()
