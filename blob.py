"""
Minimal client for a Vercel-Blob style object store.

Objects are addressed by pathname; the store hands back a public URL for each
one and that URL is what gets fetched afterwards.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

API_VERSION = "7"


class BlobError(Exception):
    """Remote object store could not complete a request."""


class BlobNotFound(BlobError):
    pass


@dataclass
class BlobObject:
    pathname: str
    url: str
    size: int = 0
    uploaded_at: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "BlobObject":
        return cls(
            pathname=data["pathname"],
            url=data["url"],
            size=int(data.get("size") or 0),
            uploaded_at=data.get("uploadedAt"),
        )


class BlobClient:
    def __init__(
        self,
        token: str,
        api_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"authorization": f"Bearer {self.token}", "x-api-version": API_VERSION}
        if extra:
            headers.update(extra)
        return headers

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            res = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise BlobError(f"{method} {url} failed: {e}") from e
        if res.status_code == 404:
            raise BlobNotFound(f"{method} {url}: not found")
        if res.status_code >= 400:
            raise BlobError(f"{method} {url}: HTTP {res.status_code}")
        return res

    @staticmethod
    def _json(res: requests.Response) -> Dict[str, Any]:
        try:
            return res.json()
        except ValueError as e:
            raise BlobError(f"Malformed response from {res.url}") from e

    def list_blobs(self, prefix: Optional[str] = None) -> List[BlobObject]:
        blobs: List[BlobObject] = []
        cursor = None
        while True:
            params: Dict[str, Any] = {"limit": 1000}
            if prefix:
                params["prefix"] = prefix
            if cursor:
                params["cursor"] = cursor
            res = self._request("GET", self.api_url, headers=self._headers(), params=params)
            payload = self._json(res)
            blobs.extend(BlobObject.from_api(b) for b in payload.get("blobs", []))
            cursor = payload.get("cursor")
            if not payload.get("hasMore") or not cursor:
                return blobs

    def find(self, pathname: str) -> Optional[BlobObject]:
        for blob in self.list_blobs(prefix=pathname):
            if blob.pathname == pathname:
                return blob
        return None

    def put(
        self,
        pathname: str,
        body: bytes,
        content_type: str,
        overwrite: bool = True,
    ) -> BlobObject:
        headers = self._headers({
            "x-content-type": content_type,
            "x-add-random-suffix": "0",
            "x-allow-overwrite": "1" if overwrite else "0",
        })
        res = self._request("PUT", f"{self.api_url}/{pathname}", headers=headers, data=body)
        blob = BlobObject.from_api(self._json(res))
        blob.size = blob.size or len(body)
        logger.debug("Stored blob %s (%d bytes)", blob.pathname, len(body))
        return blob

    def fetch(self, url: str) -> bytes:
        return self._request("GET", url, headers={"cache-control": "no-cache"}).content

    def delete(self, url: str) -> None:
        self._request("POST", f"{self.api_url}/delete", headers=self._headers(), json={"urls": [url]})
