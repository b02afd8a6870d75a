"""AI services package"""
from .factory import AIFactory, get_chat_provider
from .base import ChatProvider
from .chat_service import ChatAttachment, ChatService, ChatTurn

__all__ = ['AIFactory', 'get_chat_provider', 'ChatProvider', 'ChatAttachment', 'ChatService', 'ChatTurn']
