from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from google.cloud import firestore
from google.cloud.firestore import Client
from google.cloud.firestore_v1.base_query import FieldFilter

from models.schema import (
    COL_SUBSCRIPTIONS,
    F_CREATED_AT,
    F_EMAIL,
    F_IS_ACTIVE,
    F_PRODUCT_ID,
    F_TELEGRAM_USERNAME,
    F_UPDATED_AT,
)
from utils.ids import subscription_id


class SubscribeOutcome(str, Enum):
    CREATED = "created"
    REACTIVATED = "reactivated"
    ALREADY_ACTIVE = "already_active"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def plan_subscribe(
    existing: Optional[Dict[str, Any]],
    email: str,
    product_id: str,
    telegram_username: Optional[str],
    now_iso: str,
) -> Tuple[SubscribeOutcome, Optional[Dict[str, Any]]]:
    """
    Decide what a subscribe call does to the stored document.

    Returns the outcome and the fields to write (None: nothing to write).
    An already-active subscription is left untouched, telegram included.
    """
    if existing is None:
        doc: Dict[str, Any] = {
            F_EMAIL: email,
            F_PRODUCT_ID: product_id,
            F_IS_ACTIVE: True,
            F_CREATED_AT: now_iso,
            F_UPDATED_AT: now_iso,
        }
        if telegram_username:
            doc[F_TELEGRAM_USERNAME] = telegram_username
        return SubscribeOutcome.CREATED, doc

    if existing.get(F_IS_ACTIVE):
        return SubscribeOutcome.ALREADY_ACTIVE, None

    patch: Dict[str, Any] = {F_IS_ACTIVE: True, F_UPDATED_AT: now_iso}
    if telegram_username:
        patch[F_TELEGRAM_USERNAME] = telegram_username
    return SubscribeOutcome.REACTIVATED, patch


class SubscriptionRepository:
    """
    subscriptions/{s_<sha256(email, productId)>}

    The deterministic document id makes (email, productId) unique; every
    read-then-write runs in a transaction so concurrent subscribe calls for
    the same pair cannot both create a document.
    """

    def __init__(self, db: Client):
        self.db = db

    def _ref(self, email: str, product_id: str):
        doc_id = subscription_id(email, product_id)
        if not doc_id:
            raise ValueError("email and product_id are required")
        return self.db.collection(COL_SUBSCRIPTIONS).document(doc_id)

    def get(self, email: str, product_id: str) -> Optional[Dict[str, Any]]:
        snap = self._ref(email, product_id).get()
        if not snap.exists:
            return None
        d = snap.to_dict() or {}
        d["id"] = snap.id
        return d

    def subscribe(self, email: str, product_id: str, telegram_username: Optional[str] = None) -> SubscribeOutcome:
        ref = self._ref(email, product_id)
        txn = self.db.transaction()

        @firestore.transactional
        def _run(tx: firestore.Transaction) -> SubscribeOutcome:
            snap = ref.get(transaction=tx)
            existing = (snap.to_dict() or {}) if snap.exists else None
            outcome, fields = plan_subscribe(existing, email, product_id, telegram_username, utc_now_iso())
            if fields is None:
                return outcome
            if existing is None:
                # create() fails if the document appeared since the read
                tx.create(ref, fields)
            else:
                tx.set(ref, fields, merge=True)
            return outcome

        return _run(txn)

    def deactivate(self, email: str, product_id: str) -> bool:
        """Soft-delete. Returns False when no subscription exists for the pair."""
        ref = self._ref(email, product_id)
        txn = self.db.transaction()

        @firestore.transactional
        def _run(tx: firestore.Transaction) -> bool:
            snap = ref.get(transaction=tx)
            if not snap.exists:
                return False
            tx.set(ref, {F_IS_ACTIVE: False, F_UPDATED_AT: utc_now_iso()}, merge=True)
            return True

        return _run(txn)

    def list_active(self, email: str) -> List[Dict[str, Any]]:
        q = (
            self.db.collection(COL_SUBSCRIPTIONS)
            .where(filter=FieldFilter(F_EMAIL, "==", email))
            .where(filter=FieldFilter(F_IS_ACTIVE, "==", True))
        )
        out = []
        for snap in q.stream():
            d = snap.to_dict() or {}
            d["id"] = snap.id
            out.append(d)
        return out
