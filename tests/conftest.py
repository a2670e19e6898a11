"""Shared fixtures: temp data directories and an in-memory object store."""

from typing import Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from blob import BlobError, BlobNotFound, BlobObject
from config import Settings
from main import create_app

ADMIN_TOKEN = "s3cret-token"


class FakeBlobClient:
    """Stands in for ``blob.BlobClient``.

    Every put hands out a fresh URL, so URLs from before an overwrite go stale
    the way CDN-versioned object URLs do.
    """

    def __init__(self):
        self.objects: Dict[str, Tuple[str, bytes]] = {}
        self.down = False
        self.calls: List[str] = []
        self._version = 0

    def _op(self, name: str) -> None:
        self.calls.append(name)
        if self.down:
            raise BlobError("object store unreachable")

    def list_blobs(self, prefix: Optional[str] = None) -> List[BlobObject]:
        self._op("list")
        return [
            BlobObject(pathname=path, url=url, size=len(body))
            for path, (url, body) in sorted(self.objects.items())
            if not prefix or path.startswith(prefix)
        ]

    def find(self, pathname: str) -> Optional[BlobObject]:
        return next((b for b in self.list_blobs(prefix=pathname) if b.pathname == pathname), None)

    def put(self, pathname: str, body: bytes, content_type: str, overwrite: bool = True) -> BlobObject:
        self._op("put")
        if not overwrite and pathname in self.objects:
            raise BlobError(f"{pathname} already exists")
        self._version += 1
        url = f"https://blob.test/{pathname}?v={self._version}"
        self.objects[pathname] = (url, bytes(body))
        return BlobObject(pathname=pathname, url=url, size=len(body))

    def fetch(self, url: str) -> bytes:
        self._op("fetch")
        for current_url, body in self.objects.values():
            if current_url == url:
                return body
        raise BlobNotFound(url)

    def delete(self, url: str) -> None:
        self._op("delete")
        for path, (current_url, _) in list(self.objects.items()):
            if current_url == url:
                del self.objects[path]


@pytest.fixture
def fake_blob():
    return FakeBlobClient()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        admin_token=ADMIN_TOKEN,
        data_dir=tmp_path / "data",
        uploads_dir=tmp_path / "uploads",
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def blob_client(settings, fake_blob):
    settings.blob_token = "blob-token"
    with TestClient(create_app(settings, blob_client=fake_blob)) as c:
        yield c


@pytest.fixture
def admin():
    return {"X-Admin-Token": ADMIN_TOKEN}


@pytest.fixture
def project_payload():
    return {
        "title": "Pixel Garden",
        "description": "A generative garden that grows from commit history.",
        "imageUrl": "https://images.example.com/garden.png",
        "linkUrl": "https://garden.example.com",
        "tags": ["generative", "canvas"],
        "status": "Live",
    }
