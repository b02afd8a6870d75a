"""
Document store: uploads, listing, signed links, verification and deletion.

Uploads write the object to storage first and then insert the row. If the
insert fails, or the request is cancelled in between, the stored object is
deleted again so storage never holds files without a record. Deletes go the
other way round: the row is authoritative and goes first, and a storage
failure afterwards only leaves an orphaned object behind.

The ``documents.file_name`` column is missing in deployments that have not
run the ``add_file_name_to_documents`` migration. All statements therefore go
through SQLAlchemy Core with an explicit column list built from a one-time
schema check, and the display name is derived at read time.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import delete, insert, inspect, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from velai.config import settings
from velai.core.cache import CacheManager, owner_key
from velai.core.exceptions import NotFoundError, StorageError, ValidationError, VelaiError
from velai.db.base import utcnow
from velai.models.document import Document
from velai.utils.constants import DOCUMENTS_PATH_PREFIX, DocumentType
from velai.utils.helpers import display_name_for, get_file_extension, sanitize_filename

from .object_storage import ObjectStorage

logger = logging.getLogger(__name__)
log = structlog.get_logger(__name__)

documents_table = Document.__table__

# Attribute name -> Column; "extra_metadata" maps to the "metadata" column
_COLUMNS = Document.__mapper__.columns

PATH_ALLOCATION_ATTEMPTS = 5


@dataclass
class UploadedFile:
    """File received from a client, fully read into memory."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


def _as_uuid(value: Any, field: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}") from None


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def build_storage_path(owner_id: Any, document_type: str, extension: str, timestamp_ms: Optional[int] = None) -> str:
    """``documents/{owner_id}/{document_type}/{timestamp_ms}.{ext}``"""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{DOCUMENTS_PATH_PREFIX}/{owner_id}/{document_type}/{timestamp_ms}.{extension}"


class DocumentService:
    """Document operations for one database session."""

    # None until the documents table has been inspected in this process
    _file_name_supported: Optional[bool] = None

    def __init__(self, db: AsyncSession, storage: ObjectStorage, cache: Optional[CacheManager] = None):
        self.db = db
        self.storage = storage
        self.cache = cache

    @classmethod
    def reset_schema_cache(cls) -> None:
        """Forget the result of the file_name column check (after a migration)."""
        cls._file_name_supported = None

    async def supports_file_name(self) -> bool:
        """Whether the documents table has the file_name column."""
        cls = type(self)
        if cls._file_name_supported is None:
            conn = await self.db.connection()
            columns = await conn.run_sync(
                lambda sync_conn: {col["name"] for col in inspect(sync_conn).get_columns(documents_table.name)}
            )
            cls._file_name_supported = "file_name" in columns
            if not cls._file_name_supported:
                logger.warning(
                    "documents.file_name column missing; run `alembic upgrade head`. "
                    "Display names will be derived from metadata."
                )
        return cls._file_name_supported

    async def _selected_columns(self) -> list:
        columns = [col for col in documents_table.c if col.name != "file_name"]
        if await self.supports_file_name():
            columns.append(documents_table.c.file_name)
        return columns

    @staticmethod
    def _row_to_dict(row) -> Dict[str, Any]:
        data = row._mapping
        metadata = data[_COLUMNS["extra_metadata"]] or {}
        file_name = data.get(documents_table.c.file_name)
        return {
            "id": str(data["id"]),
            "owner_id": str(data["owner_id"]),
            "document_type": data["document_type"],
            "file_path": data["file_path"],
            "file_size": data["file_size"],
            "file_type": data["file_type"],
            "file_name": file_name,
            "display_name": display_name_for(file_name, metadata, data["file_path"]),
            "is_verified": bool(data["is_verified"]),
            "verify_notes": data["verify_notes"],
            "metadata": metadata,
            "created_at": _isoformat(data["created_at"]),
            "updated_at": _isoformat(data["updated_at"]),
        }

    def _invalidate(self, owner_id: Any) -> None:
        if self.cache:
            self.cache.invalidate_owner(owner_id)

    def _validate_upload(self, file: Optional[UploadedFile], owner_id: Any, document_type: Any) -> tuple:
        if not owner_id:
            raise ValidationError("Owner id is required")
        owner_uuid = _as_uuid(owner_id, "owner id")

        try:
            doc_type = DocumentType(str(document_type))
        except ValueError:
            allowed = ", ".join(t.value for t in DocumentType)
            raise ValidationError(f"Invalid document type '{document_type}'. Allowed: {allowed}") from None

        if file is None or not file.filename:
            raise ValidationError("A file is required")
        if file.size == 0:
            raise ValidationError("File is empty")
        if file.size > settings.MAX_UPLOAD_SIZE:
            limit_mb = settings.MAX_UPLOAD_SIZE / (1024 * 1024)
            raise ValidationError(f"File exceeds the {limit_mb:g}MB upload limit")

        extension = get_file_extension(file.filename)
        if extension not in settings.ALLOWED_DOCUMENT_EXTENSIONS:
            raise ValidationError(f"File type '.{extension}' is not allowed")

        return owner_uuid, doc_type, extension

    async def upload_document(
        self,
        file: UploadedFile,
        owner_id: Any,
        document_type: Any,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Store a file and record it.

        Args:
            file: Uploaded file
            owner_id: Owning candidate/employer id
            document_type: One of ``DocumentType``
            metadata: Extra client metadata; upload details are added to it

        Returns:
            The created document

        Raises:
            ValidationError: bad input, nothing was stored
            StorageError: the storage write failed, nothing was recorded
            VelaiError: the record could not be inserted; the stored object
                has been removed
        """
        owner_uuid, doc_type, extension = self._validate_upload(file, owner_id, document_type)

        content_type = file.content_type or "application/octet-stream"
        path = await self._store(owner_uuid, doc_type.value, extension, file.content, content_type)
        log.info("document.stored", path=path, size=file.size, backend=self.storage.name)

        now = utcnow()
        values = {
            "id": uuid.uuid4(),
            "owner_id": owner_uuid,
            "document_type": doc_type.value,
            "file_path": path,
            "file_size": file.size,
            "file_type": content_type,
            "file_name": sanitize_filename(file.filename),
            "is_verified": False,
            "extra_metadata": {
                **(metadata or {}),
                "uploaded_at": now.isoformat(),
                "original_name": file.filename,
                "content_type": content_type,
            },
            "created_at": now,
            "updated_at": now,
        }

        try:
            await self._insert_document(values)
            await self.db.commit()
        except (Exception, asyncio.CancelledError) as e:
            await self._discard_upload(path, e)
            if isinstance(e, (VelaiError, asyncio.CancelledError)):
                raise
            raise VelaiError(f"Failed to save document record: {e}") from e

        self._invalidate(owner_uuid)
        log.info("document.uploaded", document_id=str(values["id"]), owner_id=str(owner_uuid), type=doc_type.value)
        return await self.get_document(values["id"])

    async def _store(self, owner_id: uuid.UUID, document_type: str, extension: str, content: bytes, content_type: str) -> str:
        """Write to a fresh path; a taken path (same millisecond) moves on to the next one."""
        timestamp_ms = int(time.time() * 1000)
        for offset in range(PATH_ALLOCATION_ATTEMPTS):
            path = build_storage_path(owner_id, document_type, extension, timestamp_ms + offset)
            try:
                return await self.storage.upload(path, content, content_type)
            except StorageError as e:
                if e.status_code != 409:
                    raise
                logger.debug(f"Storage path {path} taken, trying next timestamp")
        raise StorageError("Could not allocate a storage path, please retry", status_code=409)

    async def _insert_document(self, values: Dict[str, Any]) -> None:
        include_file_name = await self.supports_file_name()
        try:
            await self._execute_insert(values, include_file_name)
        except SQLAlchemyError as e:
            if not include_file_name or "file_name" not in str(e).lower():
                raise
            # Deprecated: schema check passed but the column is gone (e.g. a
            # rolled-back migration). Remove once every deployment has migrated.
            logger.warning(f"Insert rejected file_name column, retrying without it: {e}")
            await self.db.rollback()
            type(self)._file_name_supported = False
            await self._execute_insert(values, include_file_name=False)

    async def _execute_insert(self, values: Dict[str, Any], include_file_name: bool) -> None:
        row = {
            _COLUMNS[attr]: value
            for attr, value in values.items()
            if include_file_name or attr != "file_name"
        }
        await self.db.execute(insert(documents_table).values(row))

    async def _discard_upload(self, path: str, error: BaseException) -> None:
        """Roll back the session and delete the object stored for a failed upload."""
        try:
            await self.db.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error(f"Rollback after failed document insert failed: {rollback_error}")

        try:
            await self.storage.remove([path])
            log.warning("document.upload.compensated", path=path, error=repr(error))
        except Exception as cleanup_error:
            log.error(
                "document.upload.compensation_failed",
                path=path,
                error=repr(error),
                cleanup_error=repr(cleanup_error),
            )

    async def get_document(self, document_id: Any) -> Dict[str, Any]:
        doc_uuid = _as_uuid(document_id, "document id")
        columns = await self._selected_columns()
        result = await self.db.execute(select(*columns).where(documents_table.c.id == doc_uuid))
        row = result.first()
        if row is None:
            raise NotFoundError(f"Document {document_id} not found")
        return self._row_to_dict(row)

    async def _load_documents(self, owner_uuid: uuid.UUID, document_type: Optional[str], is_verified: Optional[bool]) -> List[Dict[str, Any]]:
        columns = await self._selected_columns()
        query = select(*columns).where(documents_table.c.owner_id == owner_uuid)
        if document_type:
            query = query.where(documents_table.c.document_type == document_type)
        if is_verified is not None:
            query = query.where(documents_table.c.is_verified == is_verified)
        query = query.order_by(documents_table.c.created_at.desc())

        result = await self.db.execute(query)
        return [self._row_to_dict(row) for row in result.all()]

    async def list_documents(
        self,
        owner_id: Any,
        document_type: Optional[str] = None,
        is_verified: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """An owner's documents, newest first, optionally filtered."""
        owner_uuid = _as_uuid(owner_id, "owner id")
        if document_type is not None:
            try:
                document_type = DocumentType(document_type).value
            except ValueError:
                raise ValidationError(f"Invalid document type '{document_type}'") from None

        async def loader():
            return await self._load_documents(owner_uuid, document_type, is_verified)

        if self.cache:
            key = f"{owner_key('documents', owner_uuid)}:{document_type or 'all'}:{is_verified}"
            documents = await self.cache.get_or_load(key, loader, settings.CACHE_DOCUMENTS_TTL)
        else:
            documents = await loader()

        if search:
            term = search.strip().lower()
            documents = [
                doc for doc in documents
                if term in doc["display_name"].lower() or term in doc["document_type"]
            ]
        return documents

    async def get_document_url(self, document_id: Any) -> Dict[str, Any]:
        """Fresh signed download link; never cached."""
        document = await self.get_document(document_id)
        expires_in = settings.SIGNED_URL_EXPIRY_SECONDS
        url = await self.storage.create_signed_url(document["file_path"], expires_in)
        return {"id": document["id"], "url": url, "expires_in": expires_in}

    async def _update(self, document_id: Any, **values) -> Dict[str, Any]:
        document = await self.get_document(document_id)
        row = {_COLUMNS[attr]: value for attr, value in values.items()}
        row[documents_table.c.updated_at] = utcnow()
        await self.db.execute(
            update(documents_table).where(documents_table.c.id == uuid.UUID(document["id"])).values(row)
        )
        await self.db.commit()
        self._invalidate(document["owner_id"])
        return await self.get_document(document["id"])

    async def update_verification(self, document_id: Any, is_verified: bool, verify_notes: Optional[str] = None) -> Dict[str, Any]:
        document = await self._update(document_id, is_verified=bool(is_verified), verify_notes=verify_notes)
        log.info("document.verification_updated", document_id=document["id"], is_verified=document["is_verified"])
        return document

    async def update_metadata(self, document_id: Any, metadata: Dict[str, Any]) -> Dict[str, Any]:
        """Merge ``metadata`` into the stored metadata; upload details are kept."""
        if not isinstance(metadata, dict):
            raise ValidationError("Metadata must be an object")
        current = await self.get_document(document_id)
        merged = {**current["metadata"], **metadata}
        return await self._update(document_id, extra_metadata=merged)

    async def delete_document(self, document_id: Any) -> Dict[str, Any]:
        """
        Delete the record, then the stored object.

        The call succeeds once the record is gone; a storage failure is logged
        and reported as ``storage_removed: False``.
        """
        document = await self.get_document(document_id)
        await self.db.execute(delete(documents_table).where(documents_table.c.id == uuid.UUID(document["id"])))
        await self.db.commit()
        self._invalidate(document["owner_id"])
        log.info("document.deleted", document_id=document["id"], owner_id=document["owner_id"])

        storage_removed = True
        try:
            await self.storage.remove([document["file_path"]])
        except Exception as e:
            storage_removed = False
            log.warning(
                "document.storage_cleanup_failed",
                document_id=document["id"],
                path=document["file_path"],
                error=str(e),
                exc_info=True,
            )

        return {"success": True, "id": document["id"], "storage_removed": storage_removed}

    async def document_stats(self, owner_id: Any) -> Dict[str, Any]:
        documents = await self.list_documents(owner_id)
        by_type: Dict[str, int] = {}
        for doc in documents:
            by_type[doc["document_type"]] = by_type.get(doc["document_type"], 0) + 1
        verified = sum(1 for doc in documents if doc["is_verified"])
        return {
            "total": len(documents),
            "verified": verified,
            "unverified": len(documents) - verified,
            "total_size": sum(doc["file_size"] or 0 for doc in documents),
            "by_type": by_type,
        }
