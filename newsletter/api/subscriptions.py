from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.config import Settings
from newsletter.db.subscriptions import (
    StoreUnavailable,
    SubscriptionConflict,
    insert_subscriber,
)
from newsletter.dependencies import get_app_settings, get_db
from newsletter.domain.subscriber import SubscriberValidationError, validate
from newsletter.schemas.subscription import SubscribeRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/subscriptions", tags=["subscriptions"])
async def subscribe(
    body: SubscribeRequest,
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    """Validate a sign-up and record it. 200 with an empty body on success."""
    try:
        subscriber = validate(body.name, body.email, max_name_length=settings.max_name_length)
    except SubscriberValidationError as exc:
        logger.info(
            "subscriptions.rejected",
            extra={"reason": type(exc).__name__},
        )
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        await insert_subscriber(session, subscriber)
    except SubscriptionConflict as exc:
        logger.warning("subscriptions.conflict", extra={"error": str(exc)})
        raise HTTPException(status_code=500, detail="Failed to store subscription") from exc
    except StoreUnavailable as exc:
        logger.error("subscriptions.store_unavailable", exc_info=exc)
        raise HTTPException(status_code=500, detail="Failed to store subscription") from exc

    return Response(status_code=200)
