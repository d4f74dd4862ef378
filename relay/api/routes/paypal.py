"""PayPal subscription endpoints (checkout creation and webhook reconciliation)."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool

from relay.api.dependencies import (
    get_billing_manager,
    get_current_user_id,
    get_settings,
    resolve_base_url,
)
from relay.api.schemas import CreateSubscriptionRequest, CreateSubscriptionResponse, WebhookAck
from relay.billing import (
    BillingManager,
    InvalidPlanError,
    MissingApprovalLinkError,
    MissingSubscriptionIdError,
    PayPalAPIError,
    PayPalError,
    ProviderNotConfiguredError,
    WebhookNotVerifiedError,
)
from relay.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create-subscription", response_model=CreateSubscriptionResponse)
def create_subscription(
    body: CreateSubscriptionRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    manager: BillingManager = Depends(get_billing_manager),
    settings: Settings = Depends(get_settings),
) -> CreateSubscriptionResponse:
    base_url = resolve_base_url(request, settings)
    try:
        checkout = manager.create_subscription(user_id, body.planCode, base_url)
    except InvalidPlanError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except PayPalAPIError as exc:
        logger.warning("PayPal rejected subscription for user %s: %s", user_id, exc.message)
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    except (MissingApprovalLinkError, MissingSubscriptionIdError, PayPalError, ProviderNotConfiguredError) as exc:
        logger.error("Cannot create subscription for user %s: %s", user_id, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Subscription creation failed for user %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc) or "Server error",
        ) from exc

    return CreateSubscriptionResponse(
        approvalUrl=checkout.approval_url,
        subscriptionId=checkout.subscription_id,
    )


@router.post(
    "/webhook",
    status_code=status.HTTP_200_OK,
    response_model=WebhookAck,
    response_model_exclude_none=True,
)
async def paypal_webhook(
    request: Request,
    manager: BillingManager = Depends(get_billing_manager),
) -> Dict[str, Any]:
    raw_body = await request.body()
    try:
        payload = json.loads(raw_body or b"{}")
    except (ValueError, UnicodeDecodeError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook payload") from exc
    # Some senders double-encode the envelope as a JSON string.
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook payload") from exc

    try:
        outcome = await run_in_threadpool(manager.handle_webhook, request.headers, payload)
    except WebhookNotVerifiedError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("PayPal webhook handling failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc) or "Webhook error",
        ) from exc

    return outcome.as_response()
