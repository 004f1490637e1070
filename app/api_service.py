from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import settings
from models.envelope import fail
from ops.structured_logger import setup_logging
from storage.firestore_client import FirestoreConnector
from subscriptions.errors import SubscriptionError
from utils.request_context import clear_request_id, new_request_id, set_request_id

from app.routers.health import router as health_router
from app.routers.subscriptions import router as subscriptions_router

log = logging.getLogger("inventory.api")


def _get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id") or ""


def _rid_headers(request: Request) -> dict:
    rid = _get_request_id(request)
    return {"X-Request-Id": rid} if rid else {}


def create_app(connector: Optional[FirestoreConnector] = None) -> FastAPI:
    connector = connector or FirestoreConnector()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # An unreachable database aborts startup.
        connector.connect()
        try:
            yield
        finally:
            connector.close()

    app = FastAPI(title="Amul Inventory API", version="1.0.0", lifespan=lifespan)
    app.state.firestore = connector

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        rid = new_request_id(request.headers.get("x-request-id"))
        request.state.request_id = rid
        set_request_id(rid)
        try:
            response = await call_next(request)
        finally:
            clear_request_id()
        response.headers["X-Request-Id"] = rid
        return response

    @app.exception_handler(SubscriptionError)
    async def subscription_error_handler(request: Request, exc: SubscriptionError):
        return fail(exc.message, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        rid = _get_request_id(request)
        log.warning(
            "http_exception",
            extra={
                "extra": {
                    "event": "http_exception",
                    "status_code": exc.status_code,
                    "detail": exc.detail,
                    "path": request.url.path,
                    "method": request.method,
                    "request_id": rid,
                }
            },
        )
        return fail(str(exc.detail), exc.status_code, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        rid = _get_request_id(request)
        log.warning(
            "validation_error",
            extra={
                "extra": {
                    "event": "validation_error",
                    "errors": len(exc.errors()),
                    "path": request.url.path,
                    "method": request.method,
                    "request_id": rid,
                }
            },
        )
        return fail("Invalid request body", 400)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        rid = _get_request_id(request)
        log.error(
            "internal_unhandled_exception",
            extra={
                "extra": {
                    "event": "internal_unhandled_exception",
                    "error_type": type(exc).__name__,
                    "message": str(exc),
                    "path": request.url.path,
                    "method": request.method,
                    "request_id": rid,
                }
            },
            exc_info=True,
        )
        # Internal service: the message is surfaced as-is.
        return fail(str(exc) or "Unknown error", 500, headers=_rid_headers(request))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(health_router, tags=["health"])
    app.include_router(subscriptions_router, prefix="/api", tags=["subscriptions"])
    return app


setup_logging(settings.LOG_LEVEL)

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
