"""Document schemas."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class DocumentResponse(BaseModel):
    """Stored document; ``display_name`` is always filled."""
    id: str
    owner_id: str
    document_type: str
    file_path: str
    file_size: Optional[int] = None
    file_type: Optional[str] = None
    file_name: Optional[str] = None
    display_name: str
    is_verified: bool = False
    verify_notes: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class DocumentUrlResponse(BaseModel):
    id: str
    url: str
    expires_in: int


class VerificationUpdate(BaseModel):
    is_verified: bool
    verify_notes: Optional[str] = Field(None, max_length=2000)


class MetadataUpdate(BaseModel):
    metadata: Dict[str, Any]


class DocumentDeleteResponse(BaseModel):
    success: bool
    id: str
    storage_removed: bool


class DocumentStats(BaseModel):
    total: int
    verified: int
    unverified: int
    total_size: int
    by_type: Dict[str, int]
