"""Order entry endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from backoffice.api.dependencies.services import get_order_service
from backoffice.api.routers.error_helpers import raise_http_error
from backoffice.api.schemas.order import OrderCreate, OrderRead, OrderUpdate
from backoffice.core.exceptions import BackOfficeError
from backoffice.services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter()


def _unexpected(action: str, e: Exception) -> HTTPException:
    logger.error(f"Unexpected error while trying to {action}: {e}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred",
    )


@router.get(
    "",
    summary="List orders",
    response_model=list[OrderRead],
)
def list_orders(
    page: int | None = Query(None, description="Optional page number (1-indexed)"),
    page_size: int | None = Query(None, alias="pageSize"),
    orders: OrderService = Depends(get_order_service),
) -> list[OrderRead]:
    """Return all orders newest first, or one page of them when asked."""
    try:
        return [OrderRead.model_validate(o) for o in orders.list_orders(page, page_size)]
    except BackOfficeError as e:
        raise_http_error(e, "retrieve orders")
    except Exception as e:
        raise _unexpected("list orders", e) from e


@router.get(
    "/{order_code}",
    summary="Get an order by code",
    response_model=OrderRead,
)
def get_order(
    order_code: str,
    orders: OrderService = Depends(get_order_service),
) -> OrderRead:
    try:
        return OrderRead.model_validate(orders.get_order(order_code))
    except BackOfficeError as e:
        raise_http_error(e, "retrieve order")
    except Exception as e:
        raise _unexpected(f"load order {order_code}", e) from e


@router.post(
    "",
    summary="Create an order from a cart",
    status_code=status.HTTP_201_CREATED,
    response_model=OrderRead,
)
def create_order(
    payload: OrderCreate,
    orders: OrderService = Depends(get_order_service),
) -> OrderRead:
    """Check out a cart. Lines are priced from the catalog, not the request."""
    try:
        return OrderRead.model_validate(orders.create_order(payload))
    except BackOfficeError as e:
        raise_http_error(e, "create order")
    except Exception as e:
        raise _unexpected("create order", e) from e


@router.put(
    "/{order_code}",
    summary="Replace an order's customer info and items",
    response_model=OrderRead,
)
def update_order(
    order_code: str,
    payload: OrderUpdate,
    orders: OrderService = Depends(get_order_service),
) -> OrderRead:
    try:
        return OrderRead.model_validate(orders.update_order(order_code, payload))
    except BackOfficeError as e:
        raise_http_error(e, "update order")
    except Exception as e:
        raise _unexpected(f"update order {order_code}", e) from e
