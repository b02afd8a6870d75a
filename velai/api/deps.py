"""
API Dependencies
Services wired to the request's database session and the shared cache/storage
"""

from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from velai.core.cache import CacheManager, get_cache_manager
from velai.db.session import get_db
from velai.services.ai import ChatService, get_chat_provider
from velai.services.application_service import ApplicationService
from velai.services.document_service import DocumentService
from velai.services.object_storage import ObjectStorage
from velai.services.storage_factory import get_storage_service

__all__ = [
    "get_db",
    "get_cache",
    "get_storage",
    "get_application_service",
    "get_document_service",
    "get_chat_service",
]


def get_cache() -> Optional[CacheManager]:
    """Shared Redis cache, or None before startup / when disabled."""
    cache = get_cache_manager()
    if cache is None or not cache.enabled:
        return None
    return cache


def get_storage() -> ObjectStorage:
    return get_storage_service()


def get_application_service(
    db: AsyncSession = Depends(get_db),
    cache: Optional[CacheManager] = Depends(get_cache),
) -> ApplicationService:
    return ApplicationService(db, cache)


def get_document_service(
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    cache: Optional[CacheManager] = Depends(get_cache),
) -> DocumentService:
    return DocumentService(db, storage, cache)


def get_chat_service() -> ChatService:
    return ChatService(get_chat_provider())
