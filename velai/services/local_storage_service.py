"""
Local filesystem object storage for development and tests.
Mirrors the bucket/path interface of the hosted storage backend so the two
can be swapped through STORAGE_BACKEND without touching callers.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

from velai.config import settings
from velai.core.exceptions import StorageError
from velai.core.security import create_download_token

from .object_storage import ObjectStorage

logger = logging.getLogger(__name__)


class LocalStorageService(ObjectStorage):
    """
    Stores objects under ``<root>/<bucket>/<path>``.

    Signed URLs point at the API's ``/api/v1/files/{path}`` route and carry a
    short-lived JWT (see ``velai.core.security``).
    """

    def __init__(self, root_dir: Optional[str] = None, bucket: Optional[str] = None, base_url: Optional[str] = None):
        """Initialize local storage"""
        self.bucket = bucket or settings.STORAGE_BUCKET
        self.root = Path(root_dir or settings.LOCAL_STORAGE_DIR) / self.bucket
        self.base_url = (base_url or settings.APP_URL).rstrip("/")
        os.makedirs(self.root, exist_ok=True)

    @property
    def name(self) -> str:
        return "local"

    def resolve(self, path: str) -> Path:
        """Absolute location of ``path``; refuses paths escaping the bucket."""
        target = (self.root / path.lstrip("/")).resolve()
        if self.root.resolve() not in target.parents:
            raise StorageError(f"Invalid object path: {path}")
        return target

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        target = self.resolve(path)
        if target.exists():
            raise StorageError(f"Object already exists: {path}", status_code=409)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "wb") as f:
                f.write(data)
        except OSError as e:
            logger.error(f"Error writing object {path}: {e}")
            raise StorageError(f"Failed to store file: {e}") from e

        logger.info(f"Stored object {path} ({len(data)} bytes, {content_type})")
        return path

    async def remove(self, paths: List[str]) -> None:
        for path in paths:
            target = self.resolve(path)
            try:
                target.unlink(missing_ok=True)
            except OSError as e:
                logger.error(f"Error removing object {path}: {e}")
                raise StorageError(f"Failed to remove file: {e}") from e
            logger.info(f"Removed object {path}")

    async def create_signed_url(self, path: str, expires_in: int) -> str:
        if not self.resolve(path).exists():
            raise StorageError(f"Object not found: {path}", status_code=404)
        token = create_download_token(path, expires_in)
        return f"{self.base_url}/api/v1/files/{quote(path)}?token={token}"

    async def exists(self, path: str) -> bool:
        return self.resolve(path).exists()

    def read(self, path: str) -> bytes:
        """Read an object's bytes (used by the signed download route)."""
        target = self.resolve(path)
        if not target.exists():
            raise StorageError(f"Object not found: {path}", status_code=404)
        with open(target, "rb") as f:
            return f.read()
