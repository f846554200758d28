"""
Free-tier plan limit and subscription status.

The property limit is checked here, at the write path, not just by the UI
counting cards. The checkout itself happens on the provider's page
(settings.UPGRADE_URL); this service never talks to the provider.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from app.core.config import settings
from app.core.errors import NotFoundError, PlanLimitError
from app.models.property import Property
from app.models.subscriber import Subscriber
from app.services.store import Store

logger = logging.getLogger(__name__)


def get_subscriber(store: Store) -> Optional[Subscriber]:
    rows = store.query(Subscriber)
    return rows[0] if rows else None


def is_subscribed(subscriber: Optional[Subscriber], now: Optional[datetime] = None) -> bool:
    if subscriber is None or not subscriber.subscribed:
        return False
    end = subscriber.subscription_end
    if end is None:
        return True
    # Some drivers hand back naive datetimes; stored values are UTC
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    return end > (now or datetime.now(timezone.utc))


def property_limit(store: Store) -> Optional[int]:
    """Max properties for the current user, None when unlimited."""
    if is_subscribed(get_subscriber(store)):
        return None
    return settings.FREE_TIER_PROPERTY_LIMIT


def plan_status(store: Store) -> dict:
    subscriber = get_subscriber(store)
    subscribed = is_subscribed(subscriber)
    limit = None if subscribed else settings.FREE_TIER_PROPERTY_LIMIT
    count = store.count(Property)
    return {
        "plan": (subscriber.subscription_tier or "premium") if subscribed else "free",
        "subscribed": subscribed,
        "subscription_end": subscriber.subscription_end if subscribed else None,
        "property_count": count,
        "property_limit": limit,
        "can_add_property": limit is None or count < limit,
    }


def ensure_can_add_property(store: Store) -> None:
    limit = property_limit(store)
    if limit is None:
        return
    count = store.count(Property)
    if count >= limit:
        logger.info(
            "User %s hit the free plan limit (%s/%s properties)",
            store.get_current_user_id(), count, limit,
        )
        raise PlanLimitError(f"The free plan allows up to {limit} properties; upgrade to add more")


def upgrade_url() -> str:
    if not settings.UPGRADE_URL:
        raise NotFoundError("Upgrade checkout is not configured")
    return settings.UPGRADE_URL
