from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from lor_tracker.core.errors import NotFoundError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r'[/\\\x00<>:"|?*]')
MAX_FILENAME_LENGTH = 255


def sanitize_filename(filename: str | None) -> str:
    """Strip separators, null bytes and reserved characters from a client filename."""
    cleaned = _UNSAFE_CHARS.sub("", filename or "").strip()
    return cleaned[:MAX_FILENAME_LENGTH] or "upload.bin"


@dataclass(frozen=True)
class StoredBlob:
    storage_key: str
    size: int


class LocalBlobStore:
    """Blob storage on the local filesystem, addressed by relative storage keys."""

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir).expanduser().resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _full_path(self, storage_key: str) -> Path:
        path = (self.base_dir / storage_key).resolve()
        if path != self.base_dir and self.base_dir not in path.parents:
            logger.warning("storage_path_traversal", extra={"path": storage_key})
            raise NotFoundError("File not found")
        return path

    def save(self, content: bytes, *, prefix: str, original_name: str | None) -> StoredBlob:
        suffix = Path(sanitize_filename(original_name)).suffix.lower()
        storage_key = f"{prefix.strip('/')}/{uuid4().hex}{suffix}"
        path = self._full_path(storage_key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        logger.info("blob_saved", extra={"path": storage_key})
        return StoredBlob(storage_key=storage_key, size=len(content))

    def resolve_path(self, storage_key: str) -> Path:
        path = self._full_path(storage_key)
        if not path.is_file():
            raise NotFoundError("Stored file missing")
        return path

    def delete(self, storage_key: str) -> None:
        try:
            self._full_path(storage_key).unlink(missing_ok=True)
        except (OSError, NotFoundError):
            logger.exception("blob_delete_failed", extra={"path": storage_key})
