"""Chat assistant schemas."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class ChatMessageIn(BaseModel):
    """One conversation turn as the client keeps it."""
    role: Literal["user", "ai"] = "user"
    content: str = ""


class ChatRequest(BaseModel):
    messages: List[ChatMessageIn] = Field(..., min_length=1)
    language: str = "en"
    user_type: Literal["candidate", "employer"] = "candidate"


class ChatResponse(BaseModel):
    content: str
    annotations: Optional[List[Dict[str, Any]]] = None
    usage: Optional[Dict[str, Any]] = None
