"""
OpenRouter Service Implementation
Claude and other models via OpenRouter, including PDF parsing through the
file-parser plugin
"""
from typing import Any, Dict, List, Optional

import httpx

from velai.config import settings
from .base import ChatProvider


class OpenRouterService(ChatProvider):
    """OpenRouter API implementation (access to multiple models)"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(
            api_key=api_key or settings.OPENROUTER_API_KEY,
            model=model or settings.OPENROUTER_MODEL,
            client=client,
        )

    @property
    def name(self) -> str:
        return "openrouter"

    @property
    def base_url(self) -> str:
        return "https://openrouter.ai/api/v1"

    @property
    def supports_file_parser(self) -> bool:
        return True

    def build_headers(self) -> Dict[str, str]:
        headers = super().build_headers()
        # Attribution headers shown on openrouter.ai
        headers["HTTP-Referer"] = settings.APP_URL
        headers["X-Title"] = "Velai Platform"
        return headers

    def build_payload(self, messages: List[Dict[str, Any]], stream: bool, pdf_engine: Optional[str] = None) -> Dict[str, Any]:
        payload = super().build_payload(messages, stream, pdf_engine)
        if pdf_engine:
            payload["plugins"] = [
                {
                    "id": "file-parser",
                    "pdf": {"engine": pdf_engine},
                }
            ]
        return payload
