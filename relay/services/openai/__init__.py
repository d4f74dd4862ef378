"""
OpenAI service client.

Provides the chat-completions pass-through used by the ``/chat`` route.
"""

from .client import (
    ChatService,
    ChatUpstreamError,
    create_openai_client,
)

__all__ = [
    "ChatService",
    "ChatUpstreamError",
    "create_openai_client",
]
