from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.dependencies import get_subscription_service
from models.envelope import joined_list, ok
from subscriptions.service import SubscriptionService

router = APIRouter()


# Fields are optional here so a missing one is reported as
# "Email and productId are required" rather than a schema error.
class SubscribeRequest(BaseModel):
    email: str | None = None
    productId: str | None = None
    telegramUsername: str | None = None


class UnsubscribeRequest(BaseModel):
    email: str | None = None
    productId: str | None = None


@router.post("/subscriptions")
def subscribe(req: SubscribeRequest, svc: SubscriptionService = Depends(get_subscription_service)):
    message = svc.subscribe(req.email, req.productId, req.telegramUsername)
    return ok(message=message)


@router.post("/subscriptions/unsubscribe")
def unsubscribe(req: UnsubscribeRequest, svc: SubscriptionService = Depends(get_subscription_service)):
    message = svc.unsubscribe(req.email, req.productId)
    return ok(message=message)


@router.get("/subscriptions/{email}")
def list_subscriptions(email: str, svc: SubscriptionService = Depends(get_subscription_service)):
    items = svc.list_subscriptions(email)
    return ok(data=joined_list(items))
