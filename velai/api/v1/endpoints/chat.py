"""
Chat API
AI assistant for candidates and employers, with optional file attachments
"""

import json
from typing import AsyncIterator, List

import pydantic
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import StreamingResponse

from velai.api.deps import get_chat_service
from velai.core.exceptions import VelaiError
from velai.schemas.chat import ChatRequest, ChatResponse
from velai.services.ai import ChatAttachment, ChatService

router = APIRouter()


def _parse_request(payload: str) -> ChatRequest:
    try:
        return ChatRequest.model_validate_json(payload)
    except pydantic.ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.errors(include_url=False))


async def _read_attachments(files: List[UploadFile]) -> List[ChatAttachment]:
    attachments = []
    for upload in files:
        attachments.append(
            ChatAttachment(
                filename=upload.filename or "attachment",
                content=await upload.read(),
                content_type=upload.content_type or "application/octet-stream",
            )
        )
    return attachments


@router.post("", response_model=ChatResponse)
async def send_message(
    payload: str = Form(..., description="ChatRequest as JSON"),
    files: List[UploadFile] = File(default=[]),
    chat: ChatService = Depends(get_chat_service),
):
    """Send the conversation and return the assistant's full reply"""
    request = _parse_request(payload)
    attachments = await _read_attachments(files)
    return await chat.send_message(request.messages, attachments, request.language, request.user_type)


def _sse(event: dict) -> str:
    return f"data: {json.dumps(event)}\n\n"


@router.post("/stream")
async def stream_message(
    payload: str = Form(..., description="ChatRequest as JSON"),
    files: List[UploadFile] = File(default=[]),
    chat: ChatService = Depends(get_chat_service),
):
    """
    Stream the assistant's reply as server-sent events

    Each event carries ``{"content": delta}``; the stream ends with
    ``data: [DONE]``, or an ``{"error": message}`` event if the provider fails.
    """
    request = _parse_request(payload)
    attachments = await _read_attachments(files)

    async def events() -> AsyncIterator[str]:
        try:
            async for delta in chat.stream_message(request.messages, attachments, request.language, request.user_type):
                yield _sse({"content": delta})
        except VelaiError as e:
            yield _sse({"error": e.message})
        yield "data: [DONE]\n\n"

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
