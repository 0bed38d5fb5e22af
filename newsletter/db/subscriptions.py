from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.db.models import Subscription
from newsletter.domain.subscriber import NewSubscriber

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """The subscription could not be persisted."""


class SubscriptionConflict(StoreError):
    """A uniqueness constraint rejected the row (e.g. the email is already subscribed)."""


class StoreUnavailable(StoreError):
    """The database could not be reached or did not answer in time."""


async def insert_subscriber(session: AsyncSession, subscriber: NewSubscriber) -> uuid.UUID:
    """Append one subscriber row and commit. Returns the new row id.

    The subscriber must already be validated. Duplicates are rejected, never merged.
    """
    subscription_id = uuid.uuid4()
    statement = insert(Subscription).values(
        id=subscription_id,
        email=subscriber.email.value,
        name=subscriber.name.value,
        subscribed_at=datetime.now(timezone.utc),
    )
    try:
        await session.execute(statement)
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise SubscriptionConflict(f"{subscriber.email} is already subscribed") from exc
    except (SQLAlchemyError, OSError) as exc:
        await _rollback_quietly(session)
        raise StoreUnavailable("Failed to store the subscription") from exc

    logger.info("subscriptions.inserted", extra={"subscription_id": str(subscription_id)})
    return subscription_id


async def _rollback_quietly(session: AsyncSession) -> None:
    # the connection may already be gone; the original error is what matters
    try:
        await session.rollback()
    except (SQLAlchemyError, OSError):
        logger.warning("subscriptions.rollback_failed", exc_info=True)
