"""
Documents API
Upload, list, link, verify and delete candidate documents
"""

import json
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from velai.api.deps import get_document_service
from velai.config import settings
from velai.schemas.document import (
    DocumentDeleteResponse,
    DocumentResponse,
    DocumentStats,
    DocumentUrlResponse,
    MetadataUpdate,
    VerificationUpdate,
)
from velai.services.document_service import DocumentService, UploadedFile

router = APIRouter()


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    owner_id: UUID = Form(...),
    document_type: str = Form(...),
    metadata: Optional[str] = Form(None, description="JSON object"),
    service: DocumentService = Depends(get_document_service),
):
    """
    Upload a document (multipart)

    The file is stored first and then recorded; if recording fails the stored
    file is removed again.
    """
    extra = {}
    if metadata:
        try:
            extra = json.loads(metadata)
        except json.JSONDecodeError:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="metadata must be valid JSON")
        if not isinstance(extra, dict):
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="metadata must be a JSON object")

    # One byte past the limit is enough for the size check to reject it
    content = await file.read(settings.MAX_UPLOAD_SIZE + 1)
    uploaded = UploadedFile(
        filename=file.filename or "",
        content=content,
        content_type=file.content_type or "application/octet-stream",
    )
    return await service.upload_document(uploaded, owner_id, document_type, extra)


@router.get("", response_model=List[DocumentResponse])
async def list_documents(
    owner_id: UUID = Query(...),
    document_type: Optional[str] = Query(None),
    is_verified: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    service: DocumentService = Depends(get_document_service),
):
    """List an owner's documents, newest first"""
    return await service.list_documents(owner_id, document_type, is_verified, search)


@router.get("/stats", response_model=DocumentStats)
async def document_stats(
    owner_id: UUID = Query(...),
    service: DocumentService = Depends(get_document_service),
):
    return await service.document_stats(owner_id)


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(document_id: UUID, service: DocumentService = Depends(get_document_service)):
    return await service.get_document(document_id)


@router.get("/{document_id}/url", response_model=DocumentUrlResponse)
async def get_document_url(document_id: UUID, service: DocumentService = Depends(get_document_service)):
    """Signed download link, valid for SIGNED_URL_EXPIRY_SECONDS"""
    return await service.get_document_url(document_id)


@router.patch("/{document_id}/verification", response_model=DocumentResponse)
async def update_verification(
    document_id: UUID,
    update: VerificationUpdate,
    service: DocumentService = Depends(get_document_service),
):
    return await service.update_verification(document_id, update.is_verified, update.verify_notes)


@router.patch("/{document_id}/metadata", response_model=DocumentResponse)
async def update_metadata(
    document_id: UUID,
    update: MetadataUpdate,
    service: DocumentService = Depends(get_document_service),
):
    return await service.update_metadata(document_id, update.metadata)


@router.delete("/{document_id}", response_model=DocumentDeleteResponse)
async def delete_document(document_id: UUID, service: DocumentService = Depends(get_document_service)):
    """Delete the record, then the stored file (storage failures are only logged)"""
    return await service.delete_document(document_id)
