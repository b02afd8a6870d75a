"""API v1 routes."""

from fastapi import APIRouter

from velai.api.v1.endpoints import applications, chat, documents, files, matching

api_router = APIRouter()

# Include all route modules
api_router.include_router(applications.router, tags=["Applications"])
api_router.include_router(documents.router, prefix="/documents", tags=["Documents"])
api_router.include_router(matching.router, prefix="/matching", tags=["Matching"])
api_router.include_router(chat.router, prefix="/chat", tags=["Chat"])
api_router.include_router(files.router, prefix="/files", tags=["Files"])
