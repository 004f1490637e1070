from __future__ import annotations

from typing import Any, Dict, Optional

from google.cloud.firestore import Client
from google.cloud.firestore_v1.base_query import FieldFilter

from models.schema import COL_PRODUCTS, F_PRODUCT_ID


class ProductRepository:
    """Read-only access to the product catalogue."""

    def __init__(self, db: Client):
        self.db = db

    def get(self, product_id: str) -> Optional[Dict[str, Any]]:
        # Exact match on the business key, no normalization.
        if not product_id:
            return None
        q = self.db.collection(COL_PRODUCTS).where(filter=FieldFilter(F_PRODUCT_ID, "==", product_id)).limit(1)
        for snap in q.stream():
            d = snap.to_dict() or {}
            d["id"] = snap.id
            return d
        return None
