"""
Supabase Storage implementation (hosted S3-compatible object storage).
Talks to the Storage REST API with the service key.
"""

import logging
from typing import List, Optional
from urllib.parse import quote

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from velai.config import settings
from velai.core.exceptions import StorageError

from .object_storage import ObjectStorage

logger = logging.getLogger(__name__)


class SupabaseStorageService(ObjectStorage):
    """Supabase Storage bucket accessed over HTTP."""

    def __init__(
        self,
        url: Optional[str] = None,
        service_key: Optional[str] = None,
        bucket: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = (url or settings.SUPABASE_URL).rstrip("/")
        self.bucket = bucket or settings.STORAGE_BUCKET
        key = service_key or settings.SUPABASE_SERVICE_KEY
        self.client = client or httpx.AsyncClient(
            base_url=f"{self.url}/storage/v1",
            headers={
                "Authorization": f"Bearer {key}",
                "apikey": key,
            },
            timeout=settings.STORAGE_TIMEOUT,
        )

    @property
    def name(self) -> str:
        return "supabase"

    def _object_url(self, path: str) -> str:
        return f"/object/{self.bucket}/{quote(path.lstrip('/'))}"

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
            return data.get("message") or data.get("error") or response.text
        except ValueError:
            return response.text or response.reason_phrase

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        try:
            response = await self.client.post(
                self._object_url(path),
                content=data,
                headers={
                    "Content-Type": content_type or "application/octet-stream",
                    "cache-control": "3600",
                    "x-upsert": "false",
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Supabase upload HTTP error for {path}: {e}")
            raise StorageError(f"Failed to store file: {e}") from e

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.error(f"Supabase upload rejected for {path}: {response.status_code} {message}")
            duplicate = response.status_code == 409 or "already exists" in message.lower()
            raise StorageError(f"Failed to store file: {message}", status_code=409 if duplicate else None)

        logger.info(f"Uploaded object {path} to bucket {self.bucket}")
        return path

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _delete(self, paths: List[str]) -> httpx.Response:
        return await self.client.request(
            "DELETE",
            f"/object/{self.bucket}",
            json={"prefixes": paths},
        )

    async def remove(self, paths: List[str]) -> None:
        try:
            response = await self._delete(paths)
        except httpx.HTTPError as e:
            logger.error(f"Supabase remove HTTP error for {paths}: {e}")
            raise StorageError(f"Failed to remove file: {e}") from e

        if response.status_code >= 400:
            message = self._error_message(response)
            raise StorageError(f"Failed to remove file: {message}")
        logger.info(f"Removed {len(paths)} object(s) from bucket {self.bucket}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _sign(self, path: str, expires_in: int) -> httpx.Response:
        return await self.client.post(
            f"/object/sign/{self.bucket}/{quote(path.lstrip('/'))}",
            json={"expiresIn": expires_in},
        )

    async def create_signed_url(self, path: str, expires_in: int) -> str:
        try:
            response = await self._sign(path, expires_in)
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to create download link: {e}") from e

        if response.status_code >= 400:
            message = self._error_message(response)
            raise StorageError(f"Failed to create download link: {message}", status_code=502)

        try:
            data = response.json()
        except ValueError as e:
            raise StorageError("Storage returned an invalid signed URL response", status_code=502) from e
        signed = (data.get("signedURL") or data.get("signedUrl")) if isinstance(data, dict) else None
        if not signed:
            raise StorageError("Storage did not return a signed URL")
        return f"{self.url}/storage/v1{signed}"

    async def exists(self, path: str) -> bool:
        try:
            response = await self.client.head(
                f"/object/info/{self.bucket}/{quote(path.lstrip('/'))}"
            )
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to inspect file: {e}") from e
        if response.status_code >= 500:
            raise StorageError(f"Failed to inspect file: {response.status_code}", status_code=502)
        return response.status_code == 200

    async def close(self) -> None:
        await self.client.aclose()
