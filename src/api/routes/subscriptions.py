"""
Public subscription endpoints.

Endpoints:
- POST /subscriptions - Subscribe (double opt-in, sends confirmation email)
- GET /subscriptions/confirm - Redeem a confirmation token

Store and delivery failures are logged with their diagnostic detail and
answered with a generic 500; nothing internal reaches the response body.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from src.api.deps import get_confirmation_service, get_subscription_service
from src.components.confirmation import ConfirmationService, ConfirmInput, ConfirmOutcome
from src.components.subscription import (
    DELIVERY_FAILED,
    SubscribeInput,
    SubscriptionService,
)
from src.core.ports.db import StoreError

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Request/Response Models ---


class SubscribeRequest(BaseModel):
    """Request body for a subscription."""

    name: str = Field(..., description="Subscriber display name")
    email: str = Field(..., description="Email address to subscribe")


class SubscribeResponse(BaseModel):
    """Response for a subscription request."""

    success: bool = Field(..., description="Whether the request was processed successfully")
    message: str = Field(..., description="Human-readable message")


class ConfirmResponse(BaseModel):
    """Response for a confirmation request."""

    success: bool
    message: str


class ErrorResponse(BaseModel):
    """Error response."""

    detail: str


INTERNAL_ERROR_DETAIL = "Something went wrong. Please try again later."


# --- Subscribe Endpoint ---


@router.post(
    "/subscriptions",
    response_model=SubscribeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid name or email"},
        500: {"model": ErrorResponse, "description": "Store or email delivery failure"},
    },
    summary="Subscribe to the newsletter",
    description="Start the double opt-in flow. Sends a confirmation email.",
)
def subscribe(
    request_body: SubscribeRequest,
    service: SubscriptionService = Depends(get_subscription_service),
) -> SubscribeResponse:
    """
    Subscribe to the newsletter.

    Already confirmed addresses get the same success response without an
    email, so the response never reveals subscription status.
    """
    try:
        result = service.subscribe(
            SubscribeInput(name=request_body.name, email=request_body.email)
        )
    except StoreError as e:
        logger.error("Subscription failed: %s", e, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_ERROR_DETAIL,
        ) from e

    if not result.success:
        for error in result.errors:
            if error.code == DELIVERY_FAILED:
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=INTERNAL_ERROR_DETAIL,
                )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="; ".join(error.message for error in result.errors)
            or "Unable to process subscription",
        )

    return SubscribeResponse(
        success=True,
        message="Please check your email to confirm your subscription",
    )


# --- Confirm Endpoint ---


@router.get(
    "/subscriptions/confirm",
    response_model=ConfirmResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Unknown or already used token"},
        500: {"model": ErrorResponse, "description": "Store failure"},
    },
    summary="Confirm a subscription",
    description="Confirm a subscription via the token from the confirmation email.",
)
def confirm_subscription(
    subscription_token: str = Query(..., description="Token from the confirmation email"),
    service: ConfirmationService = Depends(get_confirmation_service),
) -> ConfirmResponse:
    """
    Confirm a subscription.

    Idempotent: an already confirmed subscriber gets the same success body.
    """
    try:
        result = service.confirm(ConfirmInput(token=subscription_token))
    except StoreError as e:
        logger.error("Confirmation failed in %s: %s", e.operation, e, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_ERROR_DETAIL,
        ) from e

    if result.outcome is ConfirmOutcome.UNAUTHORIZED:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired confirmation link",
        )

    return ConfirmResponse(
        success=True,
        message="Your subscription is confirmed. Welcome!",
    )
