from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

from google.cloud import firestore

from config.settings import Settings, settings as default_settings
from models.schema import COL_SYSTEM, DOC_HEALTHZ

log = logging.getLogger("inventory.storage")


class StorageConnectionError(RuntimeError):
    """Raised when the Firestore database cannot be reached at startup."""


def _default_factory(cfg: Settings) -> firestore.Client:
    # If FIRESTORE_PROJECT_ID is empty, the library will use ADC default project.
    return firestore.Client(project=cfg.FIRESTORE_PROJECT_ID or None, database=cfg.FIRESTORE_DATABASE)


class FirestoreConnector:
    """
    Owns the single Firestore client of the process.

    Lifecycle: connect() once at startup, share `client` by reference with
    every repository, close() on shutdown. A failed connect() is fatal and
    is not retried.
    """

    def __init__(
        self,
        cfg: Optional[Settings] = None,
        client_factory: Optional[Callable[[Settings], Any]] = None,
    ):
        self.cfg = cfg or default_settings
        self._factory = client_factory or _default_factory
        self._client: Optional[firestore.Client] = None

    @property
    def client(self) -> firestore.Client:
        if self._client is None:
            raise RuntimeError("firestore_not_connected")
        return self._client

    @property
    def connected(self) -> bool:
        return self._client is not None

    def connect(self) -> firestore.Client:
        if self._client is not None:
            return self._client

        t0 = time.time()
        try:
            client = self._factory(self.cfg)
            client.collection(COL_SYSTEM).document(DOC_HEALTHZ).get(timeout=self.cfg.FIRESTORE_PROBE_TIMEOUT_S)
        except Exception as e:
            log.error(
                "firestore_connect_failed",
                extra={
                    "extra": {
                        "event": "firestore_connect_failed",
                        "project": self.cfg.FIRESTORE_PROJECT_ID,
                        "database": self.cfg.FIRESTORE_DATABASE,
                        "error_type": type(e).__name__,
                        "message": str(e),
                    }
                },
                exc_info=True,
            )
            raise StorageConnectionError(f"Firestore connection failed: {e}") from e

        self._client = client
        log.info(
            "firestore_connected",
            extra={
                "extra": {
                    "event": "firestore_connected",
                    "project": self.cfg.FIRESTORE_PROJECT_ID,
                    "database": self.cfg.FIRESTORE_DATABASE,
                    "latency_ms": int((time.time() - t0) * 1000),
                }
            },
        )
        return client

    def probe(self, timeout_s: float = 0.20) -> Dict[str, Any]:
        """
        Read-only, bounded-time connectivity probe.
        - No writes
        - Uses a fixed doc path.
        - Never raises.
        """
        if self._client is None:
            return {"ok": False, "error_type": "RuntimeError", "message": "firestore_not_connected"}
        try:
            t0 = time.time()
            self._client.collection(COL_SYSTEM).document(DOC_HEALTHZ).get(timeout=timeout_s)
            dt_ms = int((time.time() - t0) * 1000)
            return {"ok": True, "latency_ms": dt_ms}
        except Exception as e:
            return {"ok": False, "error_type": type(e).__name__, "message": str(e)}

    def close(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        client.close()
        log.info("firestore_closed", extra={"extra": {"event": "firestore_closed"}})
