"""
Groq Service Implementation
Fast Llama inference through Groq's OpenAI-compatible API
"""
from typing import Any, Dict, List, Optional

import httpx

from velai.config import settings
from .base import ChatProvider


class GroqService(ChatProvider):
    """Groq API implementation (fallback provider, no file parsing)"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(
            api_key=api_key or settings.GROQ_API_KEY,
            model=model or settings.GROQ_MODEL,
            client=client,
        )

    @property
    def name(self) -> str:
        return "groq"

    @property
    def base_url(self) -> str:
        return "https://api.groq.com/openai/v1"

    def prepare_messages(self, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Groq rejects ``file`` content parts; replace them with a short note."""
        prepared = []
        for message in messages:
            content = message["content"]
            if isinstance(content, list):
                parts = []
                for part in content:
                    if part.get("type") == "file":
                        filename = part["file"].get("filename", "document")
                        parts.append({"type": "text", "text": f"[Attached file: {filename}]"})
                    else:
                        parts.append(part)
                message = {**message, "content": parts}
            prepared.append(message)
        return prepared
