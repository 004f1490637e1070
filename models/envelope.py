from __future__ import annotations

from typing import Any, Dict, Generic, List, Optional, TypeVar

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Uniform body of every subscription endpoint; unset fields are omitted."""

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    data: Optional[T] = None


class SubscriptionWithProduct(BaseModel):
    id: str = ""
    email: str
    productId: str
    telegramUsername: Optional[str] = None
    isActive: bool = True
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
    product: Dict[str, Any] = Field(default_factory=dict)


def envelope(resp: ApiResponse, status_code: int = 200, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(resp.model_dump(exclude_none=True)),
        headers=headers,
    )


def ok(message: Optional[str] = None, data: Any = None) -> JSONResponse:
    return envelope(ApiResponse(success=True, message=message, data=data))


def fail(error: str, status_code: int, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return envelope(ApiResponse(success=False, error=error), status_code=status_code, headers=headers)


def joined_list(items: List[Dict[str, Any]]) -> List[SubscriptionWithProduct]:
    return [SubscriptionWithProduct.model_validate(it) for it in items]
