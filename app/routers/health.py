from __future__ import annotations

import os
import time
from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.dependencies import get_connector
from config.settings import settings
from storage.firestore_client import FirestoreConnector

router = APIRouter()


@router.get("/health")
def health(connector: FirestoreConnector = Depends(get_connector)):
    rev = os.getenv("K_REVISION") or ""
    svc = os.getenv("K_SERVICE") or settings.SERVICE_NAME

    fs = connector.probe()

    payload: Dict[str, Any] = {
        "ok": bool(fs.get("ok", False)),
        "service": settings.SERVICE_NAME,
        "cloudrun_service": svc,
        "revision": rev,
        "environment": settings.ENVIRONMENT,
        "database": settings.FIRESTORE_DATABASE,
        "firestore_ok": bool(fs.get("ok", False)),
        "firestore": fs,
        "time_unix": time.time(),
    }
    return payload
