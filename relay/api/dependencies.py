"""FastAPI dependencies shared across the public API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from fastapi import Depends, Header, Request

from ..auth import AuthManager, require_auth
from ..billing import BillingManager
from ..config import Settings
from ..services.openai import ChatService


@dataclass
class Services:
    """Clients built once at startup and shared by every request."""

    settings: Settings
    auth_manager: AuthManager
    billing: BillingManager
    chat: ChatService


def get_services(request: Request) -> Services:
    """Return the service container attached to the running app."""

    return request.app.state.services


def get_settings(services: Services = Depends(get_services)) -> Settings:
    return services.settings


def get_billing_manager(services: Services = Depends(get_services)) -> BillingManager:
    return services.billing


def get_chat_service(services: Services = Depends(get_services)) -> ChatService:
    return services.chat


def get_authenticated_user(
    authorization: str = Header(None),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """Resolve the Firebase user from the ``Authorization: Bearer`` header."""

    return require_auth(services.auth_manager, authorization)


def get_current_user_id(user: Dict[str, Any] = Depends(get_authenticated_user)) -> str:
    return user["uid"]


def resolve_base_url(request: Request, settings: Settings) -> str:
    """Base URL for PayPal return links: configured override, then Origin, then Host."""

    if settings.app_base_url:
        return settings.app_base_url
    origin = request.headers.get("origin")
    if origin:
        return origin
    return f"https://{request.headers.get('host', '')}"
