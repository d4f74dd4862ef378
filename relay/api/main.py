"""FastAPI application exposing the relay's JSON API."""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from firebase_admin import firestore as firebase_firestore
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..auth import FirebaseAuthManager, initialize_firebase
from ..billing import BillingManager, PlanCatalog, build_billing_provider
from ..config import Settings, load_settings
from ..db import FirestoreUserStore
from ..logger import configure_logging, log
from ..services.openai import ChatService, create_openai_client
from .dependencies import Services
from .routes import chat, paypal
from .schemas import HealthResponse


def build_services(settings: Settings) -> Services:
    """Construct every outbound client once for the lifetime of the process."""

    firebase_app = initialize_firebase(settings.firebase_service_account)
    store = FirestoreUserStore(firebase_firestore.client(app=firebase_app))
    billing = BillingManager(
        store,
        build_billing_provider(settings),
        PlanCatalog.from_config(settings.paypal_plan_ids),
        preserve_missing_ids=settings.paypal_webhook_preserve_ids,
    )
    chat_service = ChatService(
        create_openai_client(settings.openai_api_key, timeout=settings.request_timeout),
        default_model=settings.openai_default_model,
        temperature=settings.openai_temperature,
        timeout=settings.request_timeout,
    )
    return Services(
        settings=settings,
        auth_manager=FirebaseAuthManager(firebase_app),
        billing=billing,
        chat=chat_service,
    )


def _configure_cors(api_app: FastAPI, settings: Settings) -> None:
    if settings.allow_all_origins:
        api_app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )
        return

    api_app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request body"},
    )


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """Build the API. Tests pass ``services`` with stubbed clients."""

    if services is None:
        settings = settings or load_settings()
        configure_logging(settings.log_level)
        services = build_services(settings)
    settings = services.settings

    api_app = FastAPI(
        title="Relay API",
        version="1.0.0",
        description=(
            "Chat relay and PayPal subscription backend. "
            "Authenticate using a Firebase ID token in the Authorization header."
        ),
    )
    api_app.state.services = services

    _configure_cors(api_app, settings)
    api_app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    api_app.add_exception_handler(RequestValidationError, _validation_error_handler)

    @api_app.get("/health", response_model=HealthResponse, tags=["health"])
    def healthcheck() -> HealthResponse:
        """Simple health endpoint for load balancers and smoke tests."""

        return HealthResponse(ok=True)

    api_app.include_router(chat.router, tags=["chat"])
    api_app.include_router(paypal.router, prefix="/paypal", tags=["billing"])

    log("[api] application created", "| paypal env:", settings.paypal_env)
    return api_app
