"""
JSON document storage for projects, navigation and site content.

Each resource is one JSON document owned by a ``ContentStore``. A store reads
through an ordered list of backends (remote object store, local file, memory)
and falls back to its compiled default once they are exhausted. Writes always
replace the whole document; the last writer wins.
"""

import copy
import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Generic, List, Optional, Sequence, TypeVar

from pydantic import TypeAdapter, ValidationError

from blob import BlobClient
from config import Settings
from schemas import DEFAULT_CONTENT, NavItem, NavItemList, Project, ProjectList, SiteContent, SiteContentDoc

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROJECTS_KEY = "data/projects.json"
NAVIGATION_KEY = "data/navigation.json"
CONTENT_KEY = "data/content.json"

CACHE_EMPTY = "CacheEmpty"
CACHE_WARM = "CacheWarm"


class StoreError(Exception):
    pass


class StoreLoadError(StoreError):
    """A backend failed in a way that must not be papered over with defaults."""


class StoreSaveError(StoreError):
    pass


class Backend:
    """One place a document can live.

    ``read`` returns the raw payload, or None when the document is absent.
    """

    name = "backend"

    def read(self) -> Optional[bytes]:
        raise NotImplementedError

    def write(self, payload: bytes) -> None:
        raise NotImplementedError


class BlobBackend(Backend):
    """Document stored as one object at a fixed key in the remote object store.

    The URL of the last object read or written is kept as a retrieval handle
    and probed first on the next read. A failed probe or an expired handle
    drops it and the key is resolved again.
    """

    name = "blob"

    def __init__(
        self,
        client: BlobClient,
        key: str,
        handle_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.key = key
        self.handle_ttl = handle_ttl
        self._clock = clock
        self._handle: Optional[str] = None
        self._handle_at = 0.0

    @property
    def state(self) -> str:
        return CACHE_WARM if self._handle else CACHE_EMPTY

    @property
    def handle(self) -> Optional[str]:
        if self._handle and self._clock() - self._handle_at > self.handle_ttl:
            self._forget()
        return self._handle

    def _remember(self, url: str) -> None:
        self._handle = url
        self._handle_at = self._clock()

    def _forget(self) -> None:
        self._handle = None

    def read(self) -> Optional[bytes]:
        url = self.handle
        if url:
            try:
                return self.client.fetch(url)
            except Exception as e:
                logger.debug("Cached handle for %s is stale: %s", self.key, e)
                self._forget()

        blob = self.client.find(self.key)
        if blob is None:
            return None
        payload = self.client.fetch(blob.url)
        self._remember(blob.url)
        return payload

    def write(self, payload: bytes) -> None:
        blob = self.client.put(self.key, payload, content_type="application/json")
        self._remember(blob.url)


def atomic_write_bytes(path: Path, payload: bytes) -> None:
    """Write ``payload`` to a temp file next to ``path`` and rename it over."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
        raise


class FileBackend(Backend):
    """Document stored as a JSON file under the data directory.

    A missing file is seeded with the default document.
    """

    name = "file"

    def __init__(self, path: Path, seed: bytes):
        self.path = Path(path)
        self.seed = seed

    def read(self) -> Optional[bytes]:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StoreLoadError(f"Failed to load {self.path}") from e

        try:
            self.write(self.seed)
        except OSError as e:
            logger.warning("Could not create %s: %s", self.path, e)
        return self.seed

    def write(self, payload: bytes) -> None:
        atomic_write_bytes(self.path, payload)


class MemoryBackend(Backend):
    name = "memory"

    def __init__(self, payload: Optional[bytes] = None):
        self.payload = payload

    def read(self) -> Optional[bytes]:
        return self.payload

    def write(self, payload: bytes) -> None:
        self.payload = payload


class ContentStore(Generic[T]):
    def __init__(
        self,
        name: str,
        adapter: TypeAdapter,
        default: T,
        backends: Sequence[Backend],
        writer: Optional[Backend] = None,
    ):
        self.name = name
        self.adapter = adapter
        self.default = default
        self.backends = list(backends)
        self.writer = writer

    def read(self) -> T:
        for backend in self.backends:
            try:
                payload = backend.read()
            except StoreLoadError:
                raise
            except Exception as e:
                logger.debug("%s: %s backend unavailable: %s", self.name, backend.name, e)
                continue
            if payload is None:
                continue
            try:
                data = json.loads(payload)
            except ValueError as e:
                logger.debug("%s: unreadable document in %s backend: %s", self.name, backend.name, e)
                continue
            try:
                return self.adapter.validate_python(data)
            except ValidationError as e:
                # an existing document is never swapped for the default
                logger.error("%s: stored document in %s backend does not match schema: %s", self.name, backend.name, e)
                raise StoreLoadError(f"Stored {self.name} document is invalid") from e
        return copy.deepcopy(self.default)

    def write(self, document: T) -> None:
        if self.writer is None:
            raise StoreSaveError(f"No storage configured for {self.name}")
        payload = self.adapter.dump_json(document, indent=2)
        try:
            self.writer.write(payload)
        except Exception as e:
            logger.error("Failed to save %s via %s backend: %s", self.name, self.writer.name, e)
            raise StoreSaveError(f"Failed to save {self.name}") from e
        logger.info("Saved %s via %s backend", self.name, self.writer.name)


class ProjectStore(ContentStore[List[Project]]):
    def find(self, slug: str) -> Optional[Project]:
        return next((p for p in self.read() if p.slug == slug), None)


class NavigationStore(ContentStore[List[NavItem]]):
    def read(self) -> List[NavItem]:
        return sorted(super().read(), key=lambda item: item.order)


class SiteContentStore(ContentStore[SiteContent]):
    pass


@dataclass
class Stores:
    projects: ProjectStore
    navigation: NavigationStore
    content: SiteContentStore


def _backends(settings: Settings, client: Optional[BlobClient], key: str, filename: str, seed: bytes):
    """Read chain and writer for one document, by storage mode."""
    backends: List[Backend] = []
    writer: Optional[Backend] = None
    if client is not None:
        writer = BlobBackend(client, key, handle_ttl=settings.blob_handle_ttl)
        backends.append(writer)
    if settings.data_dir is not None:
        local = FileBackend(Path(settings.data_dir) / filename, seed)
        backends.append(local)
        writer = writer or local
    if writer is None:
        writer = MemoryBackend()
        backends.append(writer)
    return backends, writer


def build_stores(settings: Settings, client: Optional[BlobClient] = None) -> Stores:
    def make(cls, name, adapter, default, key, filename):
        seed = adapter.dump_json(default, indent=2)
        backends, writer = _backends(settings, client, key, filename, seed)
        return cls(name, adapter, default, backends, writer)

    return Stores(
        projects=make(ProjectStore, "projects", ProjectList, [], PROJECTS_KEY, "projects.json"),
        navigation=make(NavigationStore, "navigation", NavItemList, [], NAVIGATION_KEY, "navigation.json"),
        content=make(SiteContentStore, "content", SiteContentDoc, DEFAULT_CONTENT, CONTENT_KEY, "content.json"),
    )
