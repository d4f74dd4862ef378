"""Shared logging helpers for the relay."""

from __future__ import annotations

import logging
from typing import Any

_LOGGER = logging.getLogger("relay")


def _coerce(parts: tuple[object, ...]) -> str:
    rendered = " ".join(str(part) for part in parts if part is not None)
    return rendered.strip()


def configure_logging(level: str = "INFO") -> None:
    """Install a console handler on the root logger once."""

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    root.setLevel(level)


def log(*parts: object, **metadata: Any) -> None:
    """
    Emit an info-level log message.

    Keyword arguments are appended to the message as context so call sites
    can tag entries (``uid``, ``event_type`` ...) without building strings.
    """

    message = _coerce(parts)
    if metadata:
        message = f"{message} | {metadata}"

    if not _LOGGER.handlers and not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO)

    _LOGGER.info(message)


__all__ = ["configure_logging", "log"]
