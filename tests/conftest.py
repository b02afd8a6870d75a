"""
Shared pytest fixtures.

Service tests run against an in-memory SQLite database (aiosqlite) with the
full model metadata; object storage is a LocalStorageService rooted in the
test's tmp_path and the Redis cache is disabled.
"""
import os

os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "console")

import uuid

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from velai.db.base import Base
from velai.models import Application, Candidate, Document, Interview, Job  # noqa: F401
from velai.services.document_service import DocumentService
from velai.services.local_storage_service import LocalStorageService

TEST_DATABASE_URL = "sqlite+aiosqlite://"

# documents as it exists before the add_file_name_to_documents migration
LEGACY_DOCUMENTS_DDL = """
CREATE TABLE documents (
    id CHAR(32) NOT NULL PRIMARY KEY,
    owner_id CHAR(32) NOT NULL,
    document_type VARCHAR(30) NOT NULL,
    file_path VARCHAR(500) NOT NULL,
    file_size BIGINT,
    file_type VARCHAR(100),
    is_verified BOOLEAN NOT NULL,
    verify_notes TEXT,
    metadata JSON,
    created_at DATETIME NOT NULL,
    updated_at DATETIME
)
"""


def _make_engine():
    return create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database with all tables."""
    engine = _make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def legacy_engine():
    """Database whose documents table has no file_name column."""
    engine = _make_engine()
    tables = [table for name, table in Base.metadata.tables.items() if name != "documents"]
    async with engine.begin() as conn:
        await conn.run_sync(lambda sync_conn: Base.metadata.create_all(sync_conn, tables=tables))
        await conn.exec_driver_sql(LEGACY_DOCUMENTS_DDL)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def legacy_session(legacy_engine):
    factory = async_sessionmaker(legacy_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with factory() as session:
        yield session


@pytest.fixture(autouse=True)
def reset_document_schema_cache():
    """The file_name column check is cached per process; tests switch schemas."""
    DocumentService.reset_schema_cache()
    yield
    DocumentService.reset_schema_cache()


@pytest.fixture
def storage(tmp_path):
    return LocalStorageService(root_dir=str(tmp_path), bucket="documents", base_url="http://testserver")


# =============================================================================
# Row factories
# =============================================================================

@pytest_asyncio.fixture
async def make_candidate(db_session):
    async def _make(**overrides):
        data = {
            "full_name": "Priya Sharma",
            "email": f"{uuid.uuid4().hex[:8]}@example.com",
            "skills": ["React", "Node.js", "TypeScript"],
            "experience_years": 4,
            "current_location": "Bangalore",
            "languages": ["English", "Hindi"],
            "target_salary_range": {"min": 50000, "max": 65000, "currency": "EUR"},
            "willing_to_relocate": True,
        }
        data.update(overrides)
        candidate = Candidate(**data)
        db_session.add(candidate)
        await db_session.commit()
        await db_session.refresh(candidate)
        return candidate

    return _make


@pytest_asyncio.fixture
async def make_job(db_session):
    async def _make(**overrides):
        data = {
            "title": "Full Stack Developer",
            "company_name": "Nordlicht GmbH",
            "skills_required": ["React", "Node.js", "Docker"],
            "experience_level": "mid",
            "location": "Berlin",
            "preferred_language": "English",
            "salary_range": {"min": 55000, "max": 75000, "currency": "EUR"},
            "job_type": "full_time",
            "is_remote": False,
            "is_active": True,
        }
        data.update(overrides)
        job = Job(**data)
        db_session.add(job)
        await db_session.commit()
        await db_session.refresh(job)
        return job

    return _make


@pytest_asyncio.fixture
async def make_document(db_session):
    """Insert a document row directly (no storage object)."""
    async def _make(owner_id, document_type="resume", **overrides):
        data = {
            "owner_id": owner_id,
            "document_type": document_type,
            "file_path": f"documents/{owner_id}/{document_type}/{uuid.uuid4().hex}.pdf",
            "file_size": 1024,
            "file_type": "application/pdf",
            "file_name": "cv.pdf",
            "is_verified": False,
            "extra_metadata": {"original_name": "cv.pdf"},
        }
        data.update(overrides)
        document = Document(**data)
        db_session.add(document)
        await db_session.commit()
        await db_session.refresh(document)
        return document

    return _make
