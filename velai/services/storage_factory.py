"""
Storage service factory
Returns Supabase or local filesystem object storage based on configuration
This allows seamless switching between local development and production
"""

import logging
from typing import Optional

from velai.config import settings

from .local_storage_service import LocalStorageService
from .object_storage import ObjectStorage
from .supabase_storage_service import SupabaseStorageService

logger = logging.getLogger(__name__)

_storage: Optional[ObjectStorage] = None


def create_storage_service(backend: Optional[str] = None) -> ObjectStorage:
    """
    Build the object storage backend named by ``backend`` or STORAGE_BACKEND.

    Returns:
        SupabaseStorageService when Supabase is selected and configured,
        LocalStorageService otherwise
    """
    storage_type = (backend or settings.STORAGE_BACKEND).lower()

    if storage_type == "supabase":
        if settings.SUPABASE_URL and settings.SUPABASE_SERVICE_KEY:
            logger.info(f"Using Supabase storage (bucket: {settings.STORAGE_BUCKET})")
            return SupabaseStorageService()
        logger.warning("Supabase storage requested but not configured, falling back to local storage")
        return LocalStorageService()

    logger.info(f"Using local file storage ({settings.LOCAL_STORAGE_DIR}/{settings.STORAGE_BUCKET})")
    return LocalStorageService()


def get_storage_service() -> ObjectStorage:
    """Process-wide storage backend, created on first use."""
    global _storage
    if _storage is None:
        _storage = create_storage_service()
    return _storage
