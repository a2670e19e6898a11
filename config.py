"""
Runtime settings for the Showcase API.

Everything is read from the environment once, at app construction time.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

DEFAULT_BLOB_API_URL = "https://blob.vercel-storage.com"


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass
class Settings:
    admin_token: Optional[str] = None
    blob_token: Optional[str] = None
    blob_api_url: str = DEFAULT_BLOB_API_URL
    blob_handle_ttl: float = 300.0
    blob_timeout: float = 10.0
    # None means no local files at all (memory mode when no blob token either)
    data_dir: Optional[Path] = Path("data")
    uploads_dir: Optional[Path] = Path("public") / "uploads"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @property
    def storage_mode(self) -> str:
        if self.blob_token:
            return "blob"
        if self.data_dir is not None:
            return "local"
        return "memory"


def load_settings() -> Settings:
    data_dir = os.getenv("DATA_DIR", "data")
    uploads_dir = os.getenv("UPLOADS_DIR", os.path.join("public", "uploads"))
    return Settings(
        admin_token=os.getenv("ADMIN_TOKEN") or None,
        blob_token=os.getenv("BLOB_READ_WRITE_TOKEN") or None,
        blob_api_url=os.getenv("BLOB_API_URL", DEFAULT_BLOB_API_URL),
        blob_handle_ttl=float(os.getenv("BLOB_HANDLE_TTL", "300")),
        blob_timeout=float(os.getenv("BLOB_TIMEOUT", "10")),
        data_dir=Path(data_dir) if data_dir else None,
        uploads_dir=Path(uploads_dir) if uploads_dir else None,
        cors_origins=_split_csv(os.getenv("CORS_ORIGINS", "*")) or ["*"],
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
