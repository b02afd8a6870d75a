"""
Chat Provider Factory
Centralized access to chat providers with fallback support
"""
import logging
from typing import Optional

from velai.config import settings
from velai.core.exceptions import ExternalServiceError
from .base import ChatProvider
from .groq_service import GroqService
from .openrouter_service import OpenRouterService

logger = logging.getLogger(__name__)


class AIFactory:
    """Factory to get chat provider based on configuration"""

    _providers = {
        'openrouter': OpenRouterService,
        'groq': GroqService,
    }

    _instances = {}  # Singleton instances

    @classmethod
    def get_provider(cls, provider_name: Optional[str] = None) -> ChatProvider:
        """
        Get chat provider instance

        Args:
            provider_name: Provider name ('openrouter', 'groq')
                          If None, uses settings.AI_PROVIDER

        Returns:
            ChatProvider instance

        Raises:
            ValueError: If provider not found or API key missing
        """
        if provider_name is None:
            provider_name = settings.AI_PROVIDER

        if provider_name in cls._instances:
            return cls._instances[provider_name]

        provider_class = cls._providers.get(provider_name)
        if not provider_class:
            available = ', '.join(cls._providers.keys())
            raise ValueError(
                f"Unknown AI provider: {provider_name}. "
                f"Available providers: {available}"
            )

        cls._validate_api_key(provider_name)

        instance = provider_class()
        cls._instances[provider_name] = instance
        logger.info(f"Initialized AI provider: {provider_name}")
        return instance

    @classmethod
    def get_provider_with_fallback(cls, primary: Optional[str] = None) -> ChatProvider:
        """
        Get chat provider with automatic fallback

        Raises:
            ExternalServiceError: neither provider is configured
        """
        if primary is None:
            primary = settings.AI_PROVIDER
        fallback = settings.AI_FALLBACK_PROVIDER

        try:
            return cls.get_provider(primary)
        except ValueError as e:
            if not fallback or fallback == primary:
                raise ExternalServiceError(f"AI assistant is not configured: {e}", status_code=503) from e
            logger.warning(f"Primary provider {primary} unavailable: {e}, using fallback {fallback}")

        try:
            return cls.get_provider(fallback)
        except ValueError as e:
            raise ExternalServiceError(f"AI assistant is not configured: {e}", status_code=503) from e

    @classmethod
    def _validate_api_key(cls, provider_name: str):
        """Validate that API key is configured"""
        key_mapping = {
            'openrouter': 'OPENROUTER_API_KEY',
            'groq': 'GROQ_API_KEY',
        }

        key_name = key_mapping.get(provider_name)
        if not key_name:
            return

        if not getattr(settings, key_name, None):
            raise ValueError(
                f"{provider_name} requires {key_name} to be set in environment variables"
            )

    @classmethod
    def list_providers(cls) -> list:
        """List all available providers"""
        return list(cls._providers.keys())

    @classmethod
    def reset(cls) -> None:
        """Drop cached provider instances (after settings change)."""
        cls._instances = {}


def get_chat_provider(provider_name: Optional[str] = None) -> ChatProvider:
    """Get chat provider instance (convenience function)"""
    return AIFactory.get_provider_with_fallback(provider_name)
