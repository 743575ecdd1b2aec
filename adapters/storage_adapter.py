"""Object storage adapter for uploaded media (progress photos).

Files are written below ``settings.media_root`` and served under
``settings.media_url_prefix``.
"""

import logging
from pathlib import Path, PurePosixPath
from typing import Optional

from app.config import settings
from app.exceptions import ExternalServiceError, ServiceValidationError

logger = logging.getLogger("fitmeal.storage")


class LocalStorage:
    """Filesystem-backed storage keyed by relative POSIX paths."""

    def __init__(self, root: str, url_prefix: str = "/media"):
        self.root = Path(root).resolve()
        self.url_prefix = url_prefix.rstrip("/")

    def _path_for(self, key: str) -> Path:
        """Resolve a key below the root; rejects absolute keys and '..' segments."""
        if not key or key.startswith("/") or "\\" in key:
            raise ServiceValidationError(f"Invalid storage key: {key!r}")
        parts = PurePosixPath(key).parts
        if any(part in ("..", ".") for part in parts):
            raise ServiceValidationError(f"Invalid storage key: {key!r}")
        path = (self.root / Path(*parts)).resolve()
        if self.root not in path.parents:
            raise ServiceValidationError(f"Invalid storage key: {key!r}")
        return path

    def url_for(self, key: str) -> str:
        return f"{self.url_prefix}/{key}"

    def save(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            logger.exception("storage_save_failed key=%s", key)
            raise ExternalServiceError("Could not store file") from exc
        logger.info("storage_saved key=%s bytes=%d content_type=%s", key, len(data), content_type)
        return self.url_for(key)

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        if not path.exists():
            logger.warning("storage_delete_missing key=%s", key)
            return False
        try:
            path.unlink()
        except OSError as exc:
            logger.exception("storage_delete_failed key=%s", key)
            raise ExternalServiceError("Could not delete file") from exc
        logger.info("storage_deleted key=%s", key)
        return True

    def exists(self, key: str) -> bool:
        return self._path_for(key).exists()


_storage: Optional[LocalStorage] = None


def get_storage() -> LocalStorage:
    """Shared storage instance (FastAPI dependency)."""
    global _storage
    if _storage is None:
        _storage = LocalStorage(settings.media_root, settings.media_url_prefix)
    return _storage
