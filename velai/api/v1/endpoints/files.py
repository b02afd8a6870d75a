"""
Files API
Serves locally stored documents behind signed download links
"""

import mimetypes

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response

from velai.api.deps import get_storage
from velai.core.exceptions import StorageError
from velai.core.security import verify_download_token
from velai.services.local_storage_service import LocalStorageService
from velai.services.object_storage import ObjectStorage

router = APIRouter()


@router.get("/{file_path:path}")
async def download_file(
    file_path: str,
    token: str = Query(...),
    storage: ObjectStorage = Depends(get_storage),
):
    """Download a stored file with a token from GET /documents/{id}/url"""
    if not isinstance(storage, LocalStorageService):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    granted_path = verify_download_token(token)
    if granted_path is None or granted_path != file_path:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired download link")

    try:
        content = storage.read(file_path)
    except StorageError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    media_type = mimetypes.guess_type(file_path)[0] or "application/octet-stream"
    filename = file_path.rsplit("/", 1)[-1]
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )
