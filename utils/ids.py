from __future__ import annotations

import hashlib


def subscription_id(email: str, product_id: str) -> str:
    # Deterministic document id for the (email, productId) natural key.
    # A NUL separator keeps ("a@b.c", "x") and ("a@b.cx", "") apart.
    if not email or not product_id:
        return ""
    h = hashlib.sha256(f"{email}\x00{product_id}".encode("utf-8")).hexdigest()
    return f"s_{h}"
