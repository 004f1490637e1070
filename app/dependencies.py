from __future__ import annotations

from fastapi import Depends, Request
from google.cloud.firestore import Client

from repos.product_repo import ProductRepository
from repos.subscription_repo import SubscriptionRepository
from storage.firestore_client import FirestoreConnector
from subscriptions.service import SubscriptionService


def get_connector(request: Request) -> FirestoreConnector:
    return request.app.state.firestore


def get_db(connector: FirestoreConnector = Depends(get_connector)) -> Client:
    return connector.client


def get_subscription_service(db: Client = Depends(get_db)) -> SubscriptionService:
    return SubscriptionService(subscriptions=SubscriptionRepository(db), products=ProductRepository(db))
