"""
Chat assistant: conversation formatting, attachments and PDF engine retry.

Attachments are sent inline as base64 data URLs on the latest user message.
When a PDF is attached the request first asks the provider's file parser for
OCR (``mistral-ocr``) and, if that request fails, retries once with plain text
extraction (``pdf-text``). If both fail the caller gets one readable message.
"""

import base64
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Sequence

import structlog

from velai.core.exceptions import ExternalServiceError, ValidationError
from velai.utils.constants import CHAT_USER_TYPES, PDF_MIME_TYPE

from .base import ChatProvider
from .prompts import DEFAULT_USER_TYPE, get_system_prompt

log = structlog.get_logger(__name__)

# Tried in order when a PDF is attached
PDF_ENGINES = ("mistral-ocr", "pdf-text")

EMPTY_MESSAGE_PLACEHOLDER = "Please provide a response."
ATTACHMENTS_ONLY_PLACEHOLDER = "Please analyze the uploaded files."

PDF_FAILURE_MESSAGE = (
    "We couldn't extract text from your PDF. It may be a low-quality scan. "
    "Please try a clearer scan or upload page images (PNG/JPG). Details: {details}"
)

_DOCUMENT_TYPE_HINTS = ("document", "text", "sheet", "presentation")


@dataclass
class ChatAttachment:
    """A file the user attached to the conversation."""

    filename: str
    content: bytes
    content_type: str

    @property
    def is_pdf(self) -> bool:
        return self.content_type == PDF_MIME_TYPE

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")

    def data_url(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"

    def to_content_part(self) -> Optional[Dict[str, Any]]:
        """API content part, or None for types the assistant cannot read."""
        if self.is_image:
            return {"type": "image_url", "image_url": {"url": self.data_url()}}
        if self.is_pdf or any(hint in self.content_type for hint in _DOCUMENT_TYPE_HINTS):
            return {"type": "file", "file": {"filename": self.filename, "file_data": self.data_url()}}
        return None


@dataclass
class ChatTurn:
    """One conversation message; ``role`` is "user" or "ai"."""

    role: str
    content: str = ""


def _turn(message: Any) -> ChatTurn:
    if isinstance(message, ChatTurn):
        return message
    if isinstance(message, dict):
        return ChatTurn(role=message.get("role") or message.get("type") or "user", content=message.get("content") or "")
    return ChatTurn(role=getattr(message, "role", "user"), content=getattr(message, "content", "") or "")


def build_messages(
    messages: Iterable[Any],
    attachments: Sequence[ChatAttachment] = (),
    language: str = "en",
    user_type: str = DEFAULT_USER_TYPE,
) -> List[Dict[str, Any]]:
    """Provider message list: system prompt, then the conversation in order."""
    turns = [_turn(message) for message in messages]
    if not turns and not attachments:
        raise ValidationError("At least one message is required")
    if user_type not in CHAT_USER_TYPES:
        user_type = DEFAULT_USER_TYPE

    parts = []
    for attachment in attachments:
        part = attachment.to_content_part()
        if part is None:
            log.warning("chat.attachment_skipped", filename=attachment.filename, content_type=attachment.content_type)
            continue
        parts.append(part)

    last_user = max((i for i, turn in enumerate(turns) if turn.role != "ai"), default=None)
    if parts and last_user is None:
        turns.append(ChatTurn(role="user"))
        last_user = len(turns) - 1

    api_messages: List[Dict[str, Any]] = [{"role": "system", "content": get_system_prompt(user_type, language)}]
    for index, turn in enumerate(turns):
        text = turn.content.strip()
        if index == last_user and parts:
            content: List[Dict[str, Any]] = [{"type": "text", "text": turn.content}] if text else []
            content.extend(parts)
            if len(content) == len(parts):
                content.insert(0, {"type": "text", "text": ATTACHMENTS_ONLY_PLACEHOLDER})
            api_messages.append({"role": "user", "content": content})
            continue

        api_messages.append({
            "role": "assistant" if turn.role == "ai" else "user",
            "content": turn.content if text else EMPTY_MESSAGE_PLACEHOLDER,
        })
    return api_messages


class ChatService:
    """Sends conversations to a chat provider."""

    def __init__(self, provider: ChatProvider):
        self.provider = provider

    def _engines(self, attachments: Sequence[ChatAttachment]) -> tuple:
        if self.provider.supports_file_parser and any(a.is_pdf for a in attachments):
            return PDF_ENGINES
        return (None,)

    @staticmethod
    def _final_error(engines: tuple, error: ExternalServiceError) -> ExternalServiceError:
        if engines == PDF_ENGINES:
            return ExternalServiceError(PDF_FAILURE_MESSAGE.format(details=error.message or "Unknown error"))
        return error

    async def send_message(
        self,
        messages: Iterable[Any],
        attachments: Sequence[ChatAttachment] = (),
        language: str = "en",
        user_type: str = DEFAULT_USER_TYPE,
    ) -> Dict[str, Any]:
        """
        Ask the assistant for a complete reply.

        Returns:
            {"content": str, "annotations": list | None, "usage": dict | None}

        Raises:
            ExternalServiceError: the provider failed (after the PDF retry)
        """
        api_messages = build_messages(messages, attachments, language, user_type)
        engines = self._engines(attachments)

        last_error = None
        for engine in engines:
            try:
                result = await self.provider.complete(api_messages, pdf_engine=engine)
                log.info("chat.completed", provider=self.provider.name, pdf_engine=engine, usage=result.get("usage"))
                return result
            except ExternalServiceError as e:
                last_error = e
                log.warning("chat.attempt_failed", provider=self.provider.name, pdf_engine=engine, error=e.message)

        raise self._final_error(engines, last_error) from last_error

    async def stream_message(
        self,
        messages: Iterable[Any],
        attachments: Sequence[ChatAttachment] = (),
        language: str = "en",
        user_type: str = DEFAULT_USER_TYPE,
    ) -> AsyncIterator[str]:
        """
        Stream the assistant's reply as content deltas.

        The PDF engine retry only happens if the failed attempt had not
        produced any output yet; a failure mid-stream is raised as is.
        """
        api_messages = build_messages(messages, attachments, language, user_type)
        engines = self._engines(attachments)

        last_error = None
        for engine in engines:
            received = 0
            try:
                async for delta in self.provider.stream(api_messages, pdf_engine=engine):
                    received += 1
                    yield delta
                log.info("chat.stream_completed", provider=self.provider.name, pdf_engine=engine, chunks=received)
                return
            except ExternalServiceError as e:
                if received:
                    raise
                last_error = e
                log.warning("chat.attempt_failed", provider=self.provider.name, pdf_engine=engine, error=e.message)

        raise self._final_error(engines, last_error) from last_error
