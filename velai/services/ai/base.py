"""
Base Chat Provider Interface
Abstract class for OpenAI-compatible chat completion APIs (OpenRouter, Groq)
"""
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
import structlog

from velai.config import settings
from velai.core.exceptions import ExternalServiceError

from .streaming import iter_stream_content

log = structlog.get_logger(__name__)

DEFAULT_ERROR_MESSAGE = "Failed to get AI response"


class ProviderRequestError(ExternalServiceError):
    """Non-2xx answer or transport failure from a chat provider."""

    def __init__(self, message: str, upstream_status: Optional[int] = None, pdf_engine: Optional[str] = None):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.pdf_engine = pdf_engine


def provider_error_message(response: httpx.Response) -> str:
    """The provider's ``error.message``, falling back to the status text."""
    try:
        data = response.json()
        message = (data.get("error") or {}).get("message")
    except (ValueError, AttributeError):
        message = None
    return message or response.reason_phrase or DEFAULT_ERROR_MESSAGE


class ChatProvider(ABC):
    """Base class for chat completion providers"""

    def __init__(
        self,
        api_key: str,
        model: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout or settings.AI_TIMEOUT
        self._client = client

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name"""
        pass

    @property
    @abstractmethod
    def base_url(self) -> str:
        pass

    @property
    def supports_file_parser(self) -> bool:
        """Whether the API parses PDF file parts itself (file-parser plugin)."""
        return False

    def build_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def prepare_messages(self, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Adapt API messages to what this provider accepts."""
        return messages

    def build_payload(self, messages: List[Dict[str, Any]], stream: bool, pdf_engine: Optional[str] = None) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": self.prepare_messages(messages),
            "max_tokens": settings.AI_MAX_TOKENS,
            "temperature": settings.AI_TEMPERATURE,
            "stream": stream,
        }

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                yield client

    async def complete(self, messages: List[Dict[str, Any]], pdf_engine: Optional[str] = None) -> Dict[str, Any]:
        """
        Non-streaming completion.

        Returns:
            {"content": str, "annotations": list | None, "usage": dict | None}
        """
        payload = self.build_payload(messages, stream=False, pdf_engine=pdf_engine)
        try:
            async with self._http() as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers=self.build_headers(),
                    json=payload,
                )
        except httpx.HTTPError as e:
            log.error("chat.request_failed", provider=self.name, error=str(e))
            raise ProviderRequestError(DEFAULT_ERROR_MESSAGE, pdf_engine=pdf_engine) from e

        if response.status_code >= 400:
            message = provider_error_message(response)
            log.warning("chat.provider_error", provider=self.name, status=response.status_code, message=message, pdf_engine=pdf_engine)
            raise ProviderRequestError(message, upstream_status=response.status_code, pdf_engine=pdf_engine)

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            log.warning("chat.invalid_response", provider=self.name, status=response.status_code, pdf_engine=pdf_engine)
            raise ProviderRequestError("Invalid response from AI", upstream_status=response.status_code, pdf_engine=pdf_engine)

        choices = data.get("choices")
        choice = choices[0] if isinstance(choices, list) and choices else {}
        message = (choice.get("message") if isinstance(choice, dict) else None) or {}
        content = message.get("content")
        if not content:
            raise ProviderRequestError("No response received from AI", pdf_engine=pdf_engine)

        return {
            "content": content,
            "annotations": message.get("annotations"),
            "usage": data.get("usage"),
        }

    async def stream(self, messages: List[Dict[str, Any]], pdf_engine: Optional[str] = None) -> AsyncIterator[str]:
        """Streaming completion; yields content deltas in arrival order."""
        payload = self.build_payload(messages, stream=True, pdf_engine=pdf_engine)
        try:
            async with self._http() as client:
                async with client.stream(
                    "POST",
                    f"{self.base_url}/chat/completions",
                    headers=self.build_headers(),
                    json=payload,
                ) as response:
                    if response.status_code >= 400:
                        await response.aread()
                        message = provider_error_message(response)
                        log.warning("chat.provider_error", provider=self.name, status=response.status_code, message=message, pdf_engine=pdf_engine)
                        raise ProviderRequestError(message, upstream_status=response.status_code, pdf_engine=pdf_engine)

                    async for delta in iter_stream_content(response.aiter_text()):
                        yield delta
        except httpx.HTTPError as e:
            log.error("chat.stream_failed", provider=self.name, error=str(e))
            raise ProviderRequestError(DEFAULT_ERROR_MESSAGE, pdf_engine=pdf_engine) from e
