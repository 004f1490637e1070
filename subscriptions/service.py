from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from repos.product_repo import ProductRepository
from repos.subscription_repo import SubscribeOutcome, SubscriptionRepository
from subscriptions.errors import BusinessRuleError, NotFoundError, ValidationError
from subscriptions.validators import (
    is_valid_email,
    is_valid_telegram_username,
    normalize_telegram_username,
)

log = logging.getLogger("inventory.subscriptions")

MSG_SUBSCRIBED = "Successfully subscribed to product notifications"
MSG_REACTIVATED = "Subscription reactivated successfully"
MSG_UNSUBSCRIBED = "Successfully unsubscribed"

ERR_REQUIRED = "Email and productId are required"
ERR_EMAIL = "Invalid email format"
ERR_TELEGRAM = "Invalid Telegram username format (5-32 characters, letters, numbers, underscores only)"
ERR_PRODUCT_NOT_FOUND = "Product not found"
ERR_SUBSCRIPTION_NOT_FOUND = "Subscription not found"
ERR_ALREADY_SUBSCRIBED = "Already subscribed to this product"


def _email_hint(email: str) -> str:
    # Logs carry the domain only.
    _, _, domain = (email or "").partition("@")
    return f"***@{domain}" if domain else ""


def _require_pair(email: Optional[str], product_id: Optional[str]) -> None:
    if not email or not product_id:
        raise ValidationError(ERR_REQUIRED)
    if not is_valid_email(email):
        raise ValidationError(ERR_EMAIL)


class SubscriptionService:
    """
    Subscribe / unsubscribe / list for product availability notifications.

    Raises SubscriptionError subclasses; the HTTP layer turns them into the
    response envelope.
    """

    def __init__(self, subscriptions: SubscriptionRepository, products: ProductRepository):
        self.subscriptions = subscriptions
        self.products = products

    def subscribe(self, email: Optional[str], product_id: Optional[str], telegram_username: Optional[str] = None) -> str:
        _require_pair(email, product_id)

        telegram = None
        if telegram_username:
            telegram = normalize_telegram_username(telegram_username)
            if not is_valid_telegram_username(telegram):
                raise ValidationError(ERR_TELEGRAM)

        if not self.products.get(product_id):
            raise NotFoundError(ERR_PRODUCT_NOT_FOUND)

        outcome = self.subscriptions.subscribe(email, product_id, telegram)
        fields = {"email": _email_hint(email), "product_id": product_id, "telegram": bool(telegram)}
        if outcome is SubscribeOutcome.ALREADY_ACTIVE:
            log.info("subscription_duplicate", extra={"extra": {"event": "subscription_duplicate", **fields}})
            raise BusinessRuleError(ERR_ALREADY_SUBSCRIBED)
        if outcome is SubscribeOutcome.REACTIVATED:
            log.info("subscription_reactivated", extra={"extra": {"event": "subscription_reactivated", **fields}})
            return MSG_REACTIVATED
        log.info("subscription_created", extra={"extra": {"event": "subscription_created", **fields}})
        return MSG_SUBSCRIBED

    def unsubscribe(self, email: Optional[str], product_id: Optional[str]) -> str:
        _require_pair(email, product_id)
        if not self.subscriptions.deactivate(email, product_id):
            raise NotFoundError(ERR_SUBSCRIPTION_NOT_FOUND)
        log.info(
            "subscription_deactivated",
            extra={"extra": {"event": "subscription_deactivated", "email": _email_hint(email), "product_id": product_id}},
        )
        return MSG_UNSUBSCRIBED

    def list_subscriptions(self, email: Optional[str]) -> List[Dict[str, Any]]:
        if not is_valid_email(email):
            raise ValidationError(ERR_EMAIL)

        out: List[Dict[str, Any]] = []
        orphaned: List[str] = []
        for sub in self.subscriptions.list_active(email):
            product = self.products.get(sub.get("productId", ""))
            if not product:
                orphaned.append(str(sub.get("productId", "")))
                continue
            out.append({**sub, "product": product})

        if orphaned:
            log.warning(
                "orphaned_subscriptions_dropped",
                extra={
                    "extra": {
                        "event": "orphaned_subscriptions_dropped",
                        "email": _email_hint(email),
                        "count": len(orphaned),
                        "product_ids": orphaned,
                    }
                },
            )
        return out
