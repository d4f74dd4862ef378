"""Route modules for the public API."""

from . import chat, paypal

__all__ = ["chat", "paypal"]
