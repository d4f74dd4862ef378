from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Sequence

from openai import APIStatusError, OpenAI

from .utils import log as _log

DEFAULT_TEMPERATURE = 0.3


class ChatUpstreamError(RuntimeError):
    """Raised when the chat-completions API answers with an error status."""

    def __init__(self, message: str, *, status_code: int):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def create_openai_client(api_key: Optional[str], *, timeout: float) -> Optional[OpenAI]:
    """Build the standard OpenAI client, or None when no key is configured."""

    if not api_key:
        return None
    # Outbound calls are never retried.
    client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
    _log("[openai] initialized standard OpenAI client")
    return client


def _supports_temperature(model: str) -> bool:
    """Determine if the target model accepts the temperature parameter."""
    lowered = (model or "").strip().lower()
    if not lowered:
        return True
    if lowered.startswith("gpt-5"):
        return False
    return True


class ChatService:
    """Pass-through to the chat-completions endpoint."""

    def __init__(
        self,
        client: Optional[OpenAI],
        *,
        default_model: str = "gpt-4o-mini",
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: float = 30.0,
    ):
        self._client = client
        self.default_model = default_model
        self.temperature = temperature
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    def complete(self, messages: Sequence[Dict[str, Any]], model: Optional[str] = None) -> str:
        """Return the first choice's text, stripped; empty string when absent."""

        if self._client is None:
            raise RuntimeError("Missing OPENAI_API_KEY")

        target_model = model or self.default_model
        params: Dict[str, Any] = {
            "model": target_model,
            "messages": list(messages),
            "timeout": self.timeout,
        }
        if _supports_temperature(target_model):
            params["temperature"] = self.temperature

        start_time = time.time()
        try:
            response = self._client.chat.completions.create(**params)
        except APIStatusError as exc:
            raise ChatUpstreamError(_upstream_message(exc), status_code=exc.status_code) from exc

        elapsed = time.time() - start_time
        _log("[openai] chat completion", "| model:", target_model, "| seconds:", f"{elapsed:.2f}")
        return _first_reply(response)


def _upstream_message(exc: APIStatusError) -> str:
    body = exc.body
    if isinstance(body, dict):
        error = body.get("error") if isinstance(body.get("error"), dict) else body
        message = error.get("message")
        if message:
            return str(message)
    return exc.message or "OpenAI error"


def _first_reply(response: Any) -> str:
    choices: List[Any] = list(getattr(response, "choices", None) or [])
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None) or ""
    return str(content).strip()
